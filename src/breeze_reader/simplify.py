from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from .config import BreezeReaderConfig
from .llm.openai_client import OpenAITextClient, RequestMetadata, resolve_api_key

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 5000

SYSTEM_PROMPT = (
    "You rewrite text so that it is extremely easy to read for someone with dyslexia.\n"
    "Your responsibilities:\n"
    "- Use short sentences, clear vocabulary, and an active voice.\n"
    "- Keep the core meaning and roughly the same length.\n"
    "- Output plain text only (no Markdown, no quotes, no introductions or commentary)."
)

USER_PROMPT_TEMPLATE = "Text:\n\n{text}"


class Simplifier(ABC):
    """Rewrites a text into an easier-to-read version."""

    @abstractmethod
    def simplify(self, text: str) -> str:
        raise NotImplementedError


class NoOpSimplifier(Simplifier):
    """Returns the original text unchanged."""

    def simplify(self, text: str) -> str:
        return text


class CallableSimplifier(Simplifier):
    """Adapt an arbitrary callable into the Simplifier interface."""

    def __init__(self, func: Callable[[str], str]) -> None:
        self._func = func

    def simplify(self, text: str) -> str:
        return self._func(text)


class OpenAISimplifier(Simplifier):
    """Simplifier backed by the OpenAI Responses API.

    Only the first ``MAX_INPUT_CHARS`` characters are sent.
    """

    def __init__(
        self,
        client: OpenAITextClient,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        user_prompt_template: str = USER_PROMPT_TEMPLATE,
    ) -> None:
        self._client = client
        self._system_prompt = system_prompt
        self._user_prompt_template = user_prompt_template

    def simplify(self, text: str) -> str:
        excerpt = text[:MAX_INPUT_CHARS]
        logger.info("Simplifying %s of %s characters", len(excerpt), len(text))
        simplified = self._client.complete(
            system_prompt=self._system_prompt,
            user_prompt=self._user_prompt_template.format(text=excerpt),
            metadata=RequestMetadata(purpose="simplify", char_count=len(excerpt)),
        )
        return simplified.strip()


def build_simplifier(config: BreezeReaderConfig) -> Simplifier:
    """Instantiate the configured simplifier."""
    if not config.openai.enabled:
        return NoOpSimplifier()
    client = OpenAITextClient(config.openai, api_key=resolve_api_key(config.openai))
    return OpenAISimplifier(client)
