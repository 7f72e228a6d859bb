# src/tracelog/core/identifiers.py
"""Identifier generation and validation.

Entity ids travel inside the flat wire format unescaped
(`trace{id=...,action=...}`), so they are restricted to a charset that can
never collide with its delimiters.
"""

from __future__ import annotations

import re
import uuid

ENTITY_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def unique_id() -> str:
    """Return a fresh random identifier that passes is_valid_entity_id()."""
    return str(uuid.uuid4())


def is_valid_entity_id(entity_id: str) -> bool:
    """Check an entity id against the wire-safe charset.

    Args:
        entity_id: Identifier to check

    Returns:
        True if the id is non-empty and only contains letters, digits,
        hyphens and underscores
    """
    return ENTITY_ID_PATTERN.fullmatch(entity_id) is not None
