from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, cast

from ..config import OpenAISettings

logger = logging.getLogger(__name__)

OpenAI: Callable[..., Any] | None = None


@dataclass(slots=True)
class RequestMetadata:
    """What a request is for, used for logging."""

    purpose: str
    subject: str | None = None
    char_count: int | None = None


class OpenAITextClient:
    """Thin wrapper around the OpenAI Responses API returning plain text."""

    def __init__(self, settings: OpenAISettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required when OpenAI features are enabled.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        metadata: RequestMetadata,
    ) -> str:
        """Send one request and return the model's text output."""
        client = self._ensure_client()
        response: Any = client.responses.create(
            model=self._settings.model,
            input=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self._settings.temperature,
            max_output_tokens=self._settings.max_output_tokens,
            timeout=self._settings.request_timeout,
        )
        text = self._extract_text(response)
        logger.debug(
            "OpenAI %s succeeded for %s (%s chars in)",
            metadata.purpose,
            metadata.subject,
            metadata.char_count,
        )
        return text

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @staticmethod
    def _extract_text(response: Any) -> str:
        direct = getattr(response, "output_text", None)
        if isinstance(direct, str) and direct:
            return direct
        output = getattr(response, "output", None)
        if not output:
            raise RuntimeError("OpenAI response is missing output content.")
        first = OpenAITextClient._materialize_item(output[0])
        content = first.get("content")
        if not content:
            raise RuntimeError("OpenAI response has no content segments.")
        segment = OpenAITextClient._materialize_item(content[0])
        text = segment.get("text")
        if not text:
            raise RuntimeError("OpenAI response segment missing text.")
        return text

    @staticmethod
    def _materialize_item(item: Any) -> dict[str, Any]:
        if isinstance(item, dict):
            return cast(dict[str, Any], item)
        if hasattr(item, "model_dump"):
            dumpable: Any = item
            raw_dump: dict[str, Any] = dumpable.model_dump()
            return raw_dump
        if hasattr(item, "__dict__"):
            dumpable: Any = item
            raw_dict: dict[str, Any] = dict(dumpable.__dict__)
            return raw_dict
        raise RuntimeError("Unexpected OpenAI response format.")


def resolve_api_key(settings: OpenAISettings) -> str:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    if env_name in os.environ and os.environ[env_name]:
        return os.environ[env_name]
    raise RuntimeError(
        "OpenAI API key not provided. Set openai.api_key or the configured environment variable."
    )


def _load_openai_factory() -> Callable[..., Any]:
    """Import the OpenAI client class lazily so the package works without it."""
    global OpenAI
    if OpenAI is not None:
        return OpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[llm-openai]'."
        ) from exc
    openai_cls = getattr(module, "OpenAI", None)
    if openai_cls is None:  # pragma: no cover - defensive
        raise RuntimeError("openai.OpenAI client class is unavailable in this environment.")
    OpenAI = cast(Callable[..., Any], openai_cls)
    return OpenAI
