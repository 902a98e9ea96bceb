"""Authored content loading and integrity checks."""

from .loader import (
    catalog_from_payload,
    load_catalog,
    load_catalog_dir,
    load_dialogue,
    load_quests,
    parse_dialogue,
    parse_quest,
)
from .validation import (
    ContentIssue,
    IssueSeverity,
    check_catalog,
    has_errors,
)

__all__ = [
    # Loader
    "catalog_from_payload",
    "load_catalog",
    "load_catalog_dir",
    "load_dialogue",
    "load_quests",
    "parse_dialogue",
    "parse_quest",
    # Validation
    "ContentIssue",
    "IssueSeverity",
    "check_catalog",
    "has_errors",
]
