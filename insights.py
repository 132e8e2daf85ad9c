"""Prose insights for a class, generated by an OpenAI chat model.

The prompt lists every student on its own line and asks for a Markdown
summary of strengths, weaknesses and recommendations. Any failure (missing
credential, API or network error, unexpected response shape) is logged and
replaced by :data:`FALLBACK_INSIGHT`; callers never see an exception.

Requests are numbered. When the class changes while a request is still in
flight, the older response is discarded once it arrives so the panel never
shows an insight for data that is no longer on screen.
"""
from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional, Sequence, Tuple

import openai

from config import Settings
from student_records import DerivedStudent

LOGGER = logging.getLogger(__name__)

FALLBACK_INSIGHT = "AI insights currently unavailable. Please try again later."
SYSTEM_PROMPT = "You are an expert academic counselor."
INSTRUCTIONS = (
    "Analyze the student performance data above and provide a professional, "
    "concise summary of the group's strengths, weaknesses, and 3-5 specific "
    "actionable recommendations for improvement.\n"
    "Format the response in Markdown with clear sections. "
    "Keep it encouraging but realistic."
)


def _format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def format_student_line(student: DerivedStudent) -> str:
    return (
        f"{student.name}: Marks {_format_number(student.marks)}, "
        f"Attendance {_format_number(student.attendance)}%, "
        f"Study {_format_number(student.study_hours)}h/day, "
        f"Status: {student.status.value}"
    )


def build_prompt(students: Sequence[DerivedStudent]) -> str:
    """Return the full prompt for *students*; same input, same prompt."""

    data = "\n".join(format_student_line(student) for student in students)
    return f"Data:\n{data}\n\n{INSTRUCTIONS}"


@dataclasses.dataclass(frozen=True)
class InsightResult:
    sequence: int
    text: str
    ok: bool


class InsightRequester:
    """Sends one insight request per class change and tracks the newest one."""

    def __init__(
        self,
        settings: Settings,
        client: Any = None,
        *,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._latest_sequence = 0
        self._latest_result: Optional[InsightResult] = None
        self._executor = executor
        self._owns_executor = executor is None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _get_client(self) -> Any:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.settings.api_key)
        return self._client

    def _next_sequence(self) -> int:
        with self._lock:
            self._latest_sequence = next(self._counter)
            self._latest_result = None
            return self._latest_sequence

    def _generate(self, prompt: str) -> Tuple[str, bool]:
        if not self.settings.has_credential:
            LOGGER.warning("OPENAI_API_KEY is not set; returning fallback insight")
            return FALLBACK_INSIGHT, False

        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.settings.temperature,
            )
            answer = response.choices[0].message.content
        except openai.OpenAIError:
            LOGGER.exception("Insight request failed")
            return FALLBACK_INSIGHT, False
        except (AttributeError, IndexError, KeyError, TypeError):
            LOGGER.exception("Insight response had an unexpected shape")
            return FALLBACK_INSIGHT, False
        except Exception:
            LOGGER.exception("Unexpected error while requesting insight")
            return FALLBACK_INSIGHT, False

        if not isinstance(answer, str) or not answer.strip():
            LOGGER.warning("Insight response was empty")
            return FALLBACK_INSIGHT, False
        return answer.strip(), True

    def _run(self, sequence: int, students: Sequence[DerivedStudent]) -> InsightResult:
        LOGGER.info("Requesting insight #%s for %s student(s)", sequence, len(students))
        text, ok = self._generate(build_prompt(students))
        result = InsightResult(sequence=sequence, text=text, ok=ok)
        with self._lock:
            if sequence == self._latest_sequence:
                self._latest_result = result
            else:
                LOGGER.info(
                    "Discarding stale insight #%s (latest is #%s)", sequence, self._latest_sequence
                )
        return result

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def request(self, students: Sequence[DerivedStudent]) -> InsightResult:
        """Run a request on the calling thread."""

        return self._run(self._next_sequence(), list(students))

    def submit(self, students: Sequence[DerivedStudent]) -> "Future[InsightResult]":
        """Run a request on a background worker and return its future."""

        sequence = self._next_sequence()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="insight")
        return self._executor.submit(self._run, sequence, list(students))

    def is_latest(self, result: InsightResult) -> bool:
        with self._lock:
            return result.sequence == self._latest_sequence

    def latest(self) -> Optional[InsightResult]:
        """The result of the newest request, or None while it is pending."""

        with self._lock:
            return self._latest_result

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._latest_sequence > 0 and self._latest_result is None

    def latest_text(self) -> Optional[str]:
        result = self.latest()
        return result.text if result is not None else None

    def close(self) -> None:
        """Stop the worker this requester started; a shared executor is left running."""

        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=False)
            self._executor = None

    def __enter__(self) -> "InsightRequester":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
