# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
frontmatter_split.py - Split content files into a TOML header and a body

Format:

    ---
    title = "Loops"
    ---
    # Markdown body...

Blank lines before the opening ``---`` are allowed. The header is TOML,
loaded with python-frontmatter's TOML handler (re-delimited for ``---``)
and validated against a pydantic model. Everything after the closing
``---`` is the body, decoded as one UTF-8 block.
"""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Any, Dict, Tuple, Type, TypeVar, Union

import frontmatter
from frontmatter.default_handlers import TOMLHandler
from pydantic import BaseModel, ValidationError

from coursegraph.errors import (
    FrontmatterFormatError,
    config_error,
    io_error,
)

M = TypeVar("M", bound=BaseModel)

DELIMITER = "---"


class DashTOMLHandler(TOMLHandler):
    """TOML frontmatter between ``---`` lines instead of ``+++``."""
    FM_BOUNDARY = re.compile(r"^-{3,}\s*$", re.MULTILINE)
    START_DELIMITER = DELIMITER
    END_DELIMITER = DELIMITER


HANDLER = DashTOMLHandler()


def _is_delimiter(line: bytes) -> bool:
    return line.strip() == DELIMITER.encode()


def split_frontmatter(data: bytes, source: Path) -> Tuple[str, str]:
    """
    Split raw file bytes into (header_text, body_text).

    Raises:
        FrontmatterFormatError: missing opening/closing ``---`` or bad UTF-8
    """
    reader = io.BytesIO(data)

    line = reader.readline()
    while line and not line.strip():
        line = reader.readline()

    if not _is_delimiter(line):
        raise FrontmatterFormatError(
            message=f"Did not find frontmatter header in {source.name}",
            suggestion="Start the file with a line containing exactly ---",
            context={"file": str(source)},
        )

    header_lines = []
    for line in iter(reader.readline, b""):
        if _is_delimiter(line):
            rest = reader.read()
            try:
                header = b"".join(header_lines).decode("utf-8")
                body = rest.decode("utf-8")
            except UnicodeDecodeError as e:
                raise FrontmatterFormatError(
                    message=f"Invalid UTF-8 in {source.name}",
                    suggestion="Re-save the file with UTF-8 encoding.",
                    context={"file": str(source)},
                    cause=e,
                )
            return header, body
        header_lines.append(line)

    raise FrontmatterFormatError(
        message=f"Did not find end of frontmatter header in {source.name}",
        suggestion="Close the header with a line containing exactly ---",
        context={"file": str(source)},
    )


def parse_header(header: str, model: Type[M], source: Path) -> M:
    """Load TOML header text into ``model``; unknown fields are rejected."""
    try:
        raw = HANDLER.load(header) or {}
        return model.model_validate(raw)
    except (ValueError, ValidationError) as e:
        raise config_error(source, e, what="frontmatter header")


def load_frontmatter(path: Path, model: Type[M]) -> Tuple[M, str]:
    """Read ``path`` and return (validated header, markdown body)."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise io_error(path, e)
    header, body = split_frontmatter(data, path)
    return parse_header(header, model, path), body


def dump_frontmatter(config: Union[BaseModel, Dict[str, Any]], body: str) -> str:
    """Serialize a header and body back into the frontmatter file format."""
    if isinstance(config, BaseModel):
        metadata = config.model_dump(exclude_none=True)
    else:
        metadata = dict(config)
    post = frontmatter.Post(body)
    post.metadata.update(metadata)
    return frontmatter.dumps(post, handler=HANDLER) + "\n"
