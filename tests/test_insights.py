"""
Unit Tests for the insight prompt and requester.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import openai
import pytest

from config import Settings
from derivation import derive_all
from insights import (
    FALLBACK_INSIGHT,
    INSTRUCTIONS,
    InsightRequester,
    build_prompt,
    format_student_line,
)


@pytest.fixture
def derived_class(make_student):
    return derive_all(
        [
            make_student(name="Alice", marks=85, attendance=92, study_hours=4.5),
            make_student(name="Bob", marks=40, attendance=80, study_hours=1),
        ]
    )


class TestBuildPrompt:
    def test_one_line_per_student(self, derived_class):
        assert format_student_line(derived_class[0]) == (
            "Alice: Marks 85, Attendance 92%, Study 4.5h/day, Status: Pass"
        )
        prompt = build_prompt(derived_class)

        assert "Bob: Marks 40, Attendance 80%, Study 1h/day, Status: Fail" in prompt
        assert prompt.index("Alice:") < prompt.index("Bob:")
        assert prompt.endswith(INSTRUCTIONS)

    def test_prompt_is_deterministic(self, derived_class):
        assert build_prompt(derived_class) == build_prompt(list(derived_class))


class TestInsightRequester:
    def test_returns_model_text(self, settings, fake_client, derived_class):
        requester = InsightRequester(settings, client=fake_client)
        result = requester.request(derived_class)

        assert result.ok
        assert result.text == "## Strengths\nGood attendance."
        assert len(fake_client.calls) == 1
        call = fake_client.calls[0]
        assert call["model"] == "test-model"
        assert call["messages"][-1]["content"] == build_prompt(derived_class)

    def test_each_request_calls_service_once(self, settings, fake_client, derived_class):
        requester = InsightRequester(settings, client=fake_client)
        requester.request(derived_class)
        requester.request(derived_class)

        assert len(fake_client.calls) == 2

    def test_service_error_returns_fallback(self, settings, chat_client_factory, derived_class):
        client = chat_client_factory(error=openai.OpenAIError("boom"))
        result = InsightRequester(settings, client=client).request(derived_class)

        assert not result.ok
        assert result.text == FALLBACK_INSIGHT

    def test_malformed_response_returns_fallback(self, settings, fake_client, derived_class):
        client = fake_client
        client.chat.completions.create = lambda **kwargs: object()
        result = InsightRequester(settings, client=client).request(derived_class)

        assert result.text == FALLBACK_INSIGHT

    def test_empty_response_returns_fallback(self, settings, chat_client_factory, derived_class):
        client = chat_client_factory(content="   ")
        assert InsightRequester(settings, client=client).request(derived_class).text == FALLBACK_INSIGHT

    def test_missing_credential_skips_call(self, fake_client, derived_class):
        requester = InsightRequester(Settings(api_key=None), client=fake_client)
        result = requester.request(derived_class)

        assert result.text == FALLBACK_INSIGHT
        assert fake_client.calls == []

    def test_latest_tracks_newest_request(self, settings, fake_client, derived_class):
        requester = InsightRequester(settings, client=fake_client)
        assert requester.latest() is None
        assert not requester.pending

        first = requester.request(derived_class)
        second = requester.request(derived_class)

        assert second.sequence > first.sequence
        assert requester.latest() == second
        assert requester.is_latest(second)
        assert not requester.is_latest(first)

    def test_stale_background_response_is_discarded(self, settings, chat_client_factory, derived_class):
        release = threading.Event()

        def block_first_call(call_count):
            if call_count == 1:
                release.wait(timeout=5)

        client = chat_client_factory(before=block_first_call)
        with InsightRequester(settings, client=client) as requester:
            older = requester.submit(derived_class)
            newer = requester.submit(derived_class[:1])
            assert requester.pending

            release.set()
            older_result = older.result(timeout=5)
            newer_result = newer.result(timeout=5)

        assert not requester.is_latest(older_result)
        assert requester.latest() == newer_result
        assert not requester.pending

    def test_unexpected_error_returns_fallback(self, settings, chat_client_factory, derived_class):
        client = chat_client_factory(error=RuntimeError("socket closed"))
        result = InsightRequester(settings, client=client).request(derived_class)

        assert not result.ok
        assert result.text == FALLBACK_INSIGHT

    def test_background_failure_still_publishes_fallback(self, settings, chat_client_factory, derived_class):
        client = chat_client_factory(error=RuntimeError("socket closed"))
        with InsightRequester(settings, client=client) as requester:
            result = requester.submit(derived_class).result(timeout=5)

        assert result.text == FALLBACK_INSIGHT
        assert requester.latest().text == FALLBACK_INSIGHT
        assert requester.latest_text() == FALLBACK_INSIGHT
        assert not requester.pending

    def test_latest_text(self, settings, fake_client, derived_class):
        requester = InsightRequester(settings, client=fake_client)
        assert requester.latest_text() is None

        requester.request(derived_class)
        assert requester.latest_text() == "## Strengths\nGood attendance."

    def test_shared_executor_is_not_shut_down(self, settings, fake_client, derived_class):
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            with InsightRequester(settings, client=fake_client, executor=executor) as requester:
                requester.submit(derived_class).result(timeout=5)

            assert executor.submit(lambda: 42).result(timeout=5) == 42
        finally:
            executor.shutdown(wait=True)
