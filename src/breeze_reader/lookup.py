from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, List, Sequence
from urllib.parse import quote

import requests

from .config import BreezeReaderConfig, DictionarySettings
from .errors import LookupFailed
from .llm.openai_client import OpenAITextClient, RequestMetadata, resolve_api_key
from .models import Definition, Token

logger = logging.getLogger(__name__)

NON_WORD_RE = re.compile(r"[^\w]", re.UNICODE)
CONTEXT_RADIUS = 15
UNAVAILABLE = Definition(definition="Definition not available.", examples=[])
NOT_FOUND = Definition(definition="No definition found.", examples=[])

DEFINE_SYSTEM_PROMPT = (
    "You are a concise dictionary for language learners.\n"
    "Define the requested word as it is used in the given context.\n"
    'Reply with JSON only: {"definition": "<one sentence>", "examples": ["<example sentence>"]}.'
)

DEFINE_USER_TEMPLATE = "Word: {word}\nContext: {context}"


def clean_word(text: str) -> str:
    """Strip everything but word characters from a token."""
    return NON_WORD_RE.sub("", text)


def context_window(tokens: Sequence[Token], index: int, radius: int = CONTEXT_RADIUS) -> str:
    """Join the tokens around ``index`` into a context string for lookups."""
    start = max(0, index - radius)
    end = min(len(tokens), index + radius)
    return " ".join(token.text for token in tokens[start:end])


class DefinitionLookup(ABC):
    """Definition source with a soft failure policy.

    Subclasses implement ``lookup`` and raise LookupFailed when the backing
    service cannot answer; ``define`` turns that into a placeholder
    definition so the reader keeps going.
    """

    @abstractmethod
    def lookup(self, word: str, context: str) -> Definition:
        raise NotImplementedError

    def define(self, word: str, context: str = "") -> Definition:
        try:
            return self.lookup(word, context)
        except LookupFailed as exc:
            logger.warning("Definition lookup failed for '%s': %s", word, exc)
            return UNAVAILABLE


class FreeDictionaryLookup(DefinitionLookup):
    """Looks words up in the Free Dictionary API."""

    def __init__(self, settings: DictionarySettings | None = None, session: Any | None = None) -> None:
        self._settings = settings or DictionarySettings()
        self._session = session or requests.Session()

    def lookup(self, word: str, context: str) -> Definition:
        url = f"{self._settings.api_url.rstrip('/')}/{quote(word)}"
        try:
            response = self._session.get(url, timeout=self._settings.timeout)
        except requests.RequestException as exc:
            raise LookupFailed(str(exc)) from exc
        if not response.ok:
            raise LookupFailed(f"Word not found (HTTP {response.status_code}).")
        try:
            data = response.json()
        except ValueError as exc:
            raise LookupFailed("Dictionary response was not JSON.") from exc
        return _first_definition(data)


def _first_definition(data: Any) -> Definition:
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return NOT_FOUND
    meanings = data[0].get("meanings") or []
    if not meanings:
        return NOT_FOUND
    definitions = meanings[0].get("definitions") or []
    if not definitions or not definitions[0].get("definition"):
        return NOT_FOUND
    entry = definitions[0]
    examples: List[str] = [entry["example"]] if entry.get("example") else []
    return Definition(definition=entry["definition"], examples=examples)


class OpenAIDefinitionLookup(DefinitionLookup):
    """Asks an OpenAI model for a context-aware definition."""

    def __init__(self, client: OpenAITextClient) -> None:
        self._client = client

    def lookup(self, word: str, context: str) -> Definition:
        try:
            raw = self._client.complete(
                system_prompt=DEFINE_SYSTEM_PROMPT,
                user_prompt=DEFINE_USER_TEMPLATE.format(word=word, context=context or "(none)"),
                metadata=RequestMetadata(purpose="define", subject=word, char_count=len(context)),
            )
        except Exception as exc:
            raise LookupFailed(str(exc)) from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LookupFailed("Model reply was not valid JSON.") from exc
        definition = payload.get("definition") if isinstance(payload, dict) else None
        if not definition:
            raise LookupFailed("Model reply had no definition.")
        examples = [str(example) for example in payload.get("examples") or [] if example]
        return Definition(definition=str(definition), examples=examples)


def build_lookup(config: BreezeReaderConfig) -> DefinitionLookup:
    """Pick the lookup matching ``reading.dictionary_mode``."""
    if config.reading.dictionary_mode == "ai" and config.openai.enabled:
        client = OpenAITextClient(config.openai, api_key=resolve_api_key(config.openai))
        return OpenAIDefinitionLookup(client)
    if config.reading.dictionary_mode == "ai":
        logger.info("AI dictionary requested but OpenAI is disabled; using the free dictionary.")
    return FreeDictionaryLookup(config.dictionary)
