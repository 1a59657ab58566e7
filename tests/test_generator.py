from unittest.mock import MagicMock

import pytest
import requests

from commit_ai.config import GEMINI, OPENAI, Credentials, Settings
from commit_ai.errors import ExtractionError, NetworkError, ProviderError, UserAbortedError
from commit_ai.generator import MessageGenerator, State
from commit_ai.providers import GEMINI_API_URL, OPENAI_API_URL

SAMPLE_DIFF = "diff --git a/file.txt b/file.txt\n--- a/file.txt\n+++ b/file.txt\n@@ -1 +1 @@\n-hello\n+world"
SETTINGS = Settings(gemini_model="gemini-test", openai_model="gpt-test")

BOTH = Credentials(GEMINI, gemini_key="gm-key", openai_key="sk-key")
GEMINI_ONLY = Credentials(GEMINI, gemini_key="gm-key")
OPENAI_ONLY = Credentials(OPENAI, openai_key="sk-key")


def response(payload, status_code=200):
    mock = MagicMock(spec=requests.Response)
    mock.status_code = status_code
    mock.ok = status_code < 400
    mock.reason = "OK"
    mock.json.return_value = payload
    return mock


GEMINI_OK = response({"candidates": [{"content": {"parts": [{"text": "Say world\n\nFunctions Added:\n- None\n"}]}}]})
GEMINI_ERROR = response({"error": {"code": 429, "message": "Resource has been exhausted"}}, status_code=429)
OPENAI_OK = response({"choices": [{"message": {"content": "Say world instead of hello"}}]})
OPENAI_ERROR = response({"error": {"message": "You exceeded your current quota"}}, status_code=429)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def posted_urls(session):
    return [call.kwargs["url"] for call in session.post.call_args_list]


def test_preferred_provider_success(session):
    session.post.return_value = GEMINI_OK
    manual = MagicMock()
    generator = MessageGenerator(BOTH, SETTINGS, manual_entry=manual, session=session)

    message = generator.generate(SAMPLE_DIFF)

    assert message == "Say world"
    assert generator.state is State.DONE
    assert generator.provider_used == GEMINI
    assert posted_urls(session) == [GEMINI_API_URL.format(model="gemini-test")]
    manual.assert_not_called()


def test_openai_only_credentials_call_openai(session):
    session.post.return_value = OPENAI_OK
    generator = MessageGenerator(OPENAI_ONLY, SETTINGS, session=session)

    assert generator.generate(SAMPLE_DIFF) == "Say world instead of hello"
    assert posted_urls(session) == [OPENAI_API_URL]


def test_falls_back_to_other_provider(session):
    session.post.side_effect = [GEMINI_ERROR, OPENAI_OK]
    manual = MagicMock()
    generator = MessageGenerator(BOTH, SETTINGS, manual_entry=manual, session=session)

    message = generator.generate(SAMPLE_DIFF)

    assert message == "Say world instead of hello"
    assert generator.provider_used == OPENAI
    assert posted_urls(session) == [GEMINI_API_URL.format(model="gemini-test"), OPENAI_API_URL]
    assert len(generator.errors) == 1
    manual.assert_not_called()


def test_network_failure_also_falls_back(session):
    session.post.side_effect = [requests.exceptions.ConnectTimeout("slow"), OPENAI_OK]
    generator = MessageGenerator(BOTH, SETTINGS, session=session)

    assert generator.generate(SAMPLE_DIFF) == "Say world instead of hello"
    assert isinstance(generator.errors[0], NetworkError)


def test_error_without_fallback_key_goes_to_manual_entry(session):
    session.post.return_value = GEMINI_ERROR
    manual = MagicMock(return_value="  Typed by hand  ")
    generator = MessageGenerator(GEMINI_ONLY, SETTINGS, manual_entry=manual, session=session)

    message = generator.generate(SAMPLE_DIFF)

    assert message == "Typed by hand"
    assert generator.provider_used == "manual"
    assert session.post.call_count == 1
    errors = manual.call_args.args[0]
    assert len(errors) == 1
    assert isinstance(errors[0], ProviderError)


def test_both_providers_fail_then_manual_entry(session):
    session.post.side_effect = [GEMINI_ERROR, OPENAI_ERROR]
    manual = MagicMock(return_value="Manual message")
    generator = MessageGenerator(BOTH, SETTINGS, manual_entry=manual, session=session)

    assert generator.generate(SAMPLE_DIFF) == "Manual message"
    assert session.post.call_count == 2
    assert [e.provider for e in manual.call_args.args[0]] == [GEMINI, OPENAI]


@pytest.mark.parametrize("typed", [None, "", "   "])
def test_declined_manual_entry_aborts(session, typed):
    session.post.return_value = GEMINI_ERROR
    generator = MessageGenerator(GEMINI_ONLY, SETTINGS, manual_entry=MagicMock(return_value=typed), session=session)

    with pytest.raises(UserAbortedError):
        generator.generate(SAMPLE_DIFF)
    assert generator.state is State.ABORTED


def test_no_manual_entry_callable_aborts(session):
    session.post.return_value = GEMINI_ERROR
    generator = MessageGenerator(GEMINI_ONLY, SETTINGS, session=session)

    with pytest.raises(UserAbortedError):
        generator.generate(SAMPLE_DIFF)


def test_extraction_error_is_not_recovered(session):
    session.post.return_value = response({"candidates": [{"finishReason": "SAFETY"}]})
    manual = MagicMock()
    generator = MessageGenerator(BOTH, SETTINGS, manual_entry=manual, session=session)

    with pytest.raises(ExtractionError):
        generator.generate(SAMPLE_DIFF)
    assert session.post.call_count == 1
    manual.assert_not_called()


def test_keep_placeholders(session):
    session.post.return_value = GEMINI_OK
    generator = MessageGenerator(GEMINI_ONLY, SETTINGS, strip_placeholders=False, session=session)

    assert generator.generate(SAMPLE_DIFF) == "Say world\n\nFunctions Added:\n- None"


def test_prompt_contains_diff(session):
    session.post.return_value = GEMINI_OK
    MessageGenerator(GEMINI_ONLY, SETTINGS, session=session).generate(SAMPLE_DIFF)

    body = session.post.call_args.kwargs["json"]
    assert SAMPLE_DIFF in body["contents"][0]["parts"][0]["text"]
