from __future__ import annotations

import json
from typing import Any, List

import requests

from breeze_reader.config import BreezeReaderConfig, DictionarySettings, OpenAISettings, ReadingSettings
from breeze_reader.lookup import (
    NOT_FOUND,
    UNAVAILABLE,
    FreeDictionaryLookup,
    OpenAIDefinitionLookup,
    build_lookup,
    clean_word,
    context_window,
)
from breeze_reader.tokenization import tokenize


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, raw: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._raw = raw

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._raw is not None:
            return json.loads(self._raw)
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.calls: List[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.calls.append((url, timeout))
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


SERENE = [
    {
        "word": "serene",
        "meanings": [
            {
                "partOfSpeech": "adjective",
                "definitions": [
                    {"definition": "Calm, peaceful, and untroubled.", "example": "a serene lake"},
                    {"definition": "An unused second sense."},
                ],
            }
        ],
    }
]


def test_free_dictionary_returns_first_definition():
    session = FakeSession(FakeResponse(payload=SERENE))
    lookup = FreeDictionaryLookup(DictionarySettings(api_url="https://dict.test/en/", timeout=3.0), session)

    definition = lookup.define("serene")

    assert definition.definition == "Calm, peaceful, and untroubled."
    assert definition.examples == ["a serene lake"]
    assert session.calls == [("https://dict.test/en/serene", 3.0)]


def test_free_dictionary_missing_word_is_unavailable():
    lookup = FreeDictionaryLookup(session=FakeSession(FakeResponse(status_code=404)))

    assert lookup.define("qwxz") == UNAVAILABLE


def test_free_dictionary_network_error_is_unavailable():
    lookup = FreeDictionaryLookup(session=FakeSession(error=requests.ConnectionError("offline")))

    assert lookup.define("serene") == UNAVAILABLE


def test_free_dictionary_bad_json_is_unavailable():
    lookup = FreeDictionaryLookup(session=FakeSession(FakeResponse(raw="<html>")))

    assert lookup.define("serene") == UNAVAILABLE


def test_free_dictionary_unexpected_shape_is_not_found():
    for payload in ({"title": "No Definitions Found"}, [], [{"meanings": []}]):
        lookup = FreeDictionaryLookup(session=FakeSession(FakeResponse(payload=payload)))
        assert lookup.define("serene") == NOT_FOUND


class DummyClient:
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: dict[str, Any] = {}

    def complete(self, *, system_prompt: str, user_prompt: str, metadata):
        self.prompts = {"system": system_prompt, "user": user_prompt, "metadata": metadata}
        if self.error is not None:
            raise self.error
        return self.reply


def test_openai_lookup_parses_json_reply():
    client = DummyClient(json.dumps({"definition": "Clear.", "examples": ["A lucid talk.", ""]}))
    definition = OpenAIDefinitionLookup(client).define("lucid", "a lucid talk about stars")

    assert definition.definition == "Clear."
    assert definition.examples == ["A lucid talk."]
    assert "Word: lucid" in client.prompts["user"]
    assert "a lucid talk about stars" in client.prompts["user"]
    assert client.prompts["metadata"].purpose == "define"


def test_openai_lookup_failures_fall_back():
    assert OpenAIDefinitionLookup(DummyClient("not json")).define("lucid") == UNAVAILABLE
    assert OpenAIDefinitionLookup(DummyClient("{}")).define("lucid") == UNAVAILABLE
    assert OpenAIDefinitionLookup(DummyClient(error=RuntimeError("quota"))).define("lucid") == UNAVAILABLE


def test_build_lookup_selects_backend(monkeypatch):
    from breeze_reader.llm import openai_client as oa_client

    monkeypatch.setattr(oa_client, "OpenAI", lambda **_: object())
    standard = build_lookup(BreezeReaderConfig())
    ai_disabled = build_lookup(BreezeReaderConfig(reading=ReadingSettings(dictionary_mode="ai")))
    ai = build_lookup(
        BreezeReaderConfig(
            reading=ReadingSettings(dictionary_mode="ai"),
            openai=OpenAISettings(enabled=True, api_key="token"),
        )
    )

    assert isinstance(standard, FreeDictionaryLookup)
    assert isinstance(ai_disabled, FreeDictionaryLookup)
    assert isinstance(ai, OpenAIDefinitionLookup)


def test_clean_word_strips_punctuation():
    assert clean_word('"Hello!"') == "Hello"
    assert clean_word("don't") == "dont"


def test_context_window_surrounds_index():
    tokens = tokenize(" ".join(f"w{n}" for n in range(40)))

    window = context_window(tokens, 20, radius=3).split()

    assert window == ["w17", "w18", "w19", "w20", "w21", "w22"]
    assert context_window(tokens, 0, radius=2) == "w0 w1"
