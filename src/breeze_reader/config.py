from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from .errors import InvalidConfiguration
from .models import ReadingMode

DICTIONARY_MODES = ("standard", "ai")

# Slider ranges offered by the reader UI; settings outside them are still valid.
WPM_RANGE = (100, 1500)
CHUNK_SIZE_RANGE = (2, 5)


@dataclass(slots=True)
class ReadingSettings:
    """Pacing and presentation preferences handed to the pacing controller."""

    wpm: int = 450
    chunk_size: int = 1
    mode: ReadingMode = ReadingMode.SINGLE
    bold_ratio: float = 0.5
    dictionary_mode: str = "standard"

    def validate(self) -> "ReadingSettings":
        """Return self when every field is usable, else raise InvalidConfiguration."""
        if isinstance(self.wpm, bool) or not isinstance(self.wpm, int) or self.wpm <= 0:
            raise InvalidConfiguration(f"wpm must be a positive integer, got {self.wpm!r}.")
        if (
            isinstance(self.chunk_size, bool)
            or not isinstance(self.chunk_size, int)
            or self.chunk_size < 1
        ):
            raise InvalidConfiguration(
                f"chunk_size must be an integer >= 1, got {self.chunk_size!r}."
            )
        if not isinstance(self.mode, ReadingMode):
            raise InvalidConfiguration(f"Unknown reading mode {self.mode!r}.")
        if (
            isinstance(self.bold_ratio, bool)
            or not isinstance(self.bold_ratio, (int, float))
            or not 0.0 <= self.bold_ratio <= 1.0
        ):
            raise InvalidConfiguration(
                f"bold_ratio must be a number within [0, 1], got {self.bold_ratio!r}."
            )
        if self.dictionary_mode not in DICTIONARY_MODES:
            raise InvalidConfiguration(
                f"dictionary_mode must be one of {DICTIONARY_MODES}, got {self.dictionary_mode!r}."
            )
        return self

    @property
    def step(self) -> int:
        """Tokens advanced per tick."""
        return self.chunk_size if self.mode is ReadingMode.CHUNK else 1


@dataclass(slots=True)
class DictionarySettings:
    """Configuration block for the free dictionary lookup."""

    api_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    timeout: float = 10.0


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for OpenAI-backed definitions and simplification."""

    enabled: bool = False
    model: str = "gpt-4.1-mini"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    temperature: float = 0.5
    max_output_tokens: int = 1200
    request_timeout: float = 60.0


@dataclass(slots=True)
class BreezeReaderConfig:
    """Top-level configuration for the reader."""

    library_path: str = "breeze_library.json"
    reading: ReadingSettings = field(default_factory=ReadingSettings)
    dictionary: DictionarySettings = field(default_factory=DictionarySettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dictionary representation of the configuration."""
        data = dict(asdict(self))
        data["reading"]["mode"] = self.reading.mode.value
        return data


def _filter(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {item.name for item in fields(cls)}
    return {key: data[key] for key in data if key in allowed}


def reading_settings_from_dict(data: Mapping[str, Any]) -> ReadingSettings:
    """Build ReadingSettings from a mapping, coercing the mode name."""
    kwargs = _filter(ReadingSettings, data)
    if "mode" in kwargs and not isinstance(kwargs["mode"], ReadingMode):
        try:
            kwargs["mode"] = ReadingMode(str(kwargs["mode"]).lower())
        except ValueError as exc:
            raise InvalidConfiguration(f"Unknown reading mode {kwargs['mode']!r}.") from exc
    return ReadingSettings(**kwargs)


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    kwargs = _filter(BreezeReaderConfig, data)
    if "reading" in data:
        reading_value = data["reading"]
        if isinstance(reading_value, ReadingSettings):
            kwargs["reading"] = reading_value
        elif isinstance(reading_value, Mapping):
            kwargs["reading"] = reading_settings_from_dict(reading_value)
        else:
            kwargs.pop("reading")
    if "dictionary" in data:
        dictionary_value = data["dictionary"]
        if isinstance(dictionary_value, DictionarySettings):
            kwargs["dictionary"] = dictionary_value
        elif isinstance(dictionary_value, Mapping):
            kwargs["dictionary"] = _build_dictionary_settings(dictionary_value)
        else:
            kwargs.pop("dictionary")
    if "openai" in data:
        openai_value = data["openai"]
        if isinstance(openai_value, OpenAISettings):
            kwargs["openai"] = openai_value
        elif isinstance(openai_value, Mapping):
            kwargs["openai"] = _build_openai_settings(openai_value)
        else:
            kwargs.pop("openai")
    return kwargs


def _build_dictionary_settings(data: Mapping[str, Any]) -> DictionarySettings:
    return DictionarySettings(**_filter(DictionarySettings, data))


def _build_openai_settings(data: Mapping[str, Any]) -> OpenAISettings:
    return OpenAISettings(**_filter(OpenAISettings, data))


def config_from_dict(data: Mapping[str, Any] | None) -> BreezeReaderConfig:
    """Build a BreezeReaderConfig from a dictionary-like input."""
    if data is None:
        return BreezeReaderConfig()
    config = BreezeReaderConfig(**_build_kwargs(data))
    config.reading.validate()
    return config


def config_from_yaml(path: str | Path) -> BreezeReaderConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> BreezeReaderConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return BreezeReaderConfig()
    return config_from_yaml(path)
