import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Modules live at the repository root.
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from config import Settings  # noqa: E402
from student_records import RawStudent  # noqa: E402


@pytest.fixture
def make_student():
    """Factory for raw records with sensible passing defaults."""
    counter = iter(range(1, 10_000))

    def _make(name="Alice", marks=80.0, attendance=90.0, study_hours=3.0, student_id=None):
        return RawStudent(
            id=student_id or f"s{next(counter)}",
            name=name,
            marks=marks,
            attendance=attendance,
            study_hours=study_hours,
        )

    return _make


@pytest.fixture
def settings():
    return Settings(api_key="test-key", model="test-model", temperature=0.0)


class FakeChatClient:
    """Stands in for ``openai.OpenAI``; records calls and replays a response."""

    def __init__(self, content="## Strengths\nGood attendance.", error=None, before=None):
        self.content = content
        self.error = error
        self.before = before
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.before is not None:
            self.before(len(self.calls))
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_client():
    return FakeChatClient()


@pytest.fixture
def chat_client_factory():
    return FakeChatClient
