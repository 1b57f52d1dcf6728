#!/usr/bin/env python3
"""
security_utils.py (CourseGraph)

Id validation and path traversal protection.

Every id that reaches the filesystem (directory names while resolving
items, article ids from the serving layer) passes through here first.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Union

from coursegraph.errors import invalid_id_error


# ============================================================================
# Id Validation
# ============================================================================

ID_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_id_segment(value: str) -> bool:
    """True if value is a single, non-empty id segment."""
    return bool(value) and ID_SEGMENT_RE.match(value) is not None


def validate_id(value: str) -> str:
    """
    Validate a flat id (no separators) and return it unchanged.

    Raises:
        IdValidationError: on an empty id or any character outside
            [A-Za-z0-9_-]. Nothing is read from disk before this check.
    """
    if not isinstance(value, str) or not value:
        raise invalid_id_error(str(value))
    for c in value:
        if not (c.isascii() and (c.isalnum() or c in "-_")):
            raise invalid_id_error(value, c)
    return value


def validate_path_id(value: str) -> str:
    """
    Validate a hierarchical id (``course/child``); every segment must be a
    valid flat id, so ``.`` and ``..`` segments are rejected.
    """
    if not isinstance(value, str) or not value:
        raise invalid_id_error(str(value))
    for segment in value.split("/"):
        validate_id(segment)
    return value


# ============================================================================
# Path Validation
# ============================================================================

def is_safe_path(base_dir: Path, target_path: Path) -> bool:
    """
    Check if target_path is safely within base_dir (no symlink escape).

    Prevents path traversal via symlinks or ../ sequences.
    """
    try:
        base = Path(base_dir).resolve()
        target = Path(target_path).resolve()
        target.relative_to(base)
        return True
    except (ValueError, OSError):
        return False


def safe_join(base_dir: Path, *parts: Union[str, Path]) -> Path:
    """
    Join parts onto base_dir, refusing results that leave it.

    Raises:
        IdValidationError: if the joined path escapes base_dir
    """
    candidate = Path(base_dir).joinpath(*parts)
    if not is_safe_path(base_dir, candidate):
        raise invalid_id_error("/".join(str(p) for p in parts))
    return candidate
