from pathlib import Path

import pytest

from breeze_reader.config import (
    BreezeReaderConfig,
    ReadingSettings,
    config_from_dict,
    config_from_yaml,
    load_config,
)
from breeze_reader.errors import InvalidConfiguration
from breeze_reader.models import ReadingMode


def test_defaults_when_no_path():
    config = load_config(None)

    assert config == BreezeReaderConfig()
    assert config.reading.wpm == 450
    assert config.reading.mode is ReadingMode.SINGLE
    assert not config.openai.enabled


def test_yaml_overrides_nested_blocks(tmp_path: Path):
    path = tmp_path / "reader.yaml"
    path.write_text(
        "library_path: shelf.json\n"
        "reading:\n"
        "  wpm: 620\n"
        "  mode: CHUNK\n"
        "  chunk_size: 3\n"
        "  unknown_key: ignored\n"
        "dictionary:\n"
        "  timeout: 2.5\n"
        "openai:\n"
        "  enabled: true\n"
        "  model: gpt-test\n",
        encoding="utf-8",
    )

    config = config_from_yaml(path)

    assert config.library_path == "shelf.json"
    assert config.reading.wpm == 620
    assert config.reading.mode is ReadingMode.CHUNK
    assert config.reading.step == 3
    assert config.dictionary.timeout == 2.5
    assert config.openai.enabled
    assert config.openai.model == "gpt-test"


def test_empty_yaml_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert config_from_yaml(path) == BreezeReaderConfig()


def test_yaml_must_be_a_mapping(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        config_from_yaml(path)


@pytest.mark.parametrize(
    "reading",
    [
        {"wpm": 0},
        {"wpm": -30},
        {"wpm": "fast"},
        {"chunk_size": 0},
        {"mode": "teleport"},
        {"bold_ratio": 1.5},
        {"bold_ratio": "half"},
        {"bold_ratio": None},
        {"dictionary_mode": "thesaurus"},
    ],
)
def test_invalid_reading_settings_are_rejected(reading):
    with pytest.raises(InvalidConfiguration):
        config_from_dict({"reading": reading})


def test_invalid_configuration_is_a_value_error():
    with pytest.raises(ValueError):
        ReadingSettings(wpm=True).validate()


def test_step_ignores_chunk_size_outside_chunk_mode():
    assert ReadingSettings(chunk_size=4, mode=ReadingMode.FLOW).step == 1
    assert ReadingSettings(chunk_size=4, mode=ReadingMode.CHUNK).step == 4


def test_to_dict_renders_mode_as_string():
    data = config_from_dict({"reading": {"mode": "flow"}}).to_dict()

    assert data["reading"]["mode"] == "flow"
    assert data["dictionary"]["api_url"].startswith("https://")


def test_yaml_with_non_numeric_bold_ratio_is_rejected(tmp_path: Path):
    path = tmp_path / "reader.yaml"
    path.write_text("reading:\n  bold_ratio: half\n", encoding="utf-8")

    with pytest.raises(InvalidConfiguration):
        config_from_yaml(path)
