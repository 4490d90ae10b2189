"""
breeze_reader package exports the pacing, emphasis and review helpers for library consumers.
"""

from __future__ import annotations

from .config import BreezeReaderConfig, ReadingSettings, config_from_dict, config_from_yaml, load_config
from .emphasis import emphasize
from .orp import orp_index, split_orp
from .pacing import PacingController
from .retention import due_queue, grade
from .timing import build_timeline, compute_delay_ms
from .tokenization import tokenize

__all__ = [
    "BreezeReaderConfig",
    "ReadingSettings",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "emphasize",
    "orp_index",
    "split_orp",
    "PacingController",
    "due_queue",
    "grade",
    "build_timeline",
    "compute_delay_ms",
    "tokenize",
]

__version__ = "0.1.0"
