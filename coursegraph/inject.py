# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
inject.py - Rewrite the markdown token stream around `@` annotations

An annotation is a paragraph whose only text is ``@name`` or
``@name;data``, immediately followed by the block its tag expects:

    @quiz;loops-1
    ```toml
    question = "How many times does `for i in range(3)` run?"
    ...
    ```

markdown-it-py turns the annotation into the token triple
``paragraph_open, inline, paragraph_close``. When that triple is found the
following block (a ``fence`` token, or ``blockquote_open ... blockquote_close``)
is consumed and handed to the tag's handler, whose returned tokens replace
the annotation and the block. All other tokens pass through untouched.

Tags live in an immutable TagRegistry that is built once and passed into
every parse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Sequence, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

from coursegraph.errors import (
    AnnotationBlockMismatch,
    InvalidAnnotationSyntax,
    UnknownAnnotationTag,
)
from coursegraph.security_utils import is_valid_id_segment

if TYPE_CHECKING:
    from coursegraph.state import StagedItem

logger = logging.getLogger(__name__)

ANNOTATION_PREFIX = "@"
DATA_SEPARATOR = ";"


# ============================================================================
# Expected block shapes
# ============================================================================

def fence_language(token: Token) -> str:
    """Whole info string of a fence; ```toml title=x is not a toml fence."""
    return token.info.strip()


@dataclass(frozen=True)
class FencedCode:
    """A fenced code block; ``language=None`` accepts any language."""
    language: Optional[str] = None

    def matches(self, token: Token) -> bool:
        if token.type != "fence":
            return False
        return self.language is None or fence_language(token) == self.language

    def describe(self) -> str:
        if self.language is None:
            return "fenced code block"
        return f"fenced code block ({self.language})"


@dataclass(frozen=True)
class BlockQuote:
    def matches(self, token: Token) -> bool:
        return token.type == "blockquote_open"

    def describe(self) -> str:
        return "blockquote"


ExpectedBlock = Union[FencedCode, BlockQuote]


def describe_token(token: Optional[Token]) -> str:
    """Human-readable shape of the token found where a block was expected."""
    if token is None:
        return "end of document"
    if token.type == "fence":
        lang = fence_language(token)
        return f"fenced code block ({lang})" if lang else "fenced code block (no language)"
    if token.type == "code_block":
        return "indented code block"
    name = token.type[:-len("_open")] if token.type.endswith("_open") else token.type
    return name.replace("_", " ")


# ============================================================================
# Registry
# ============================================================================

@dataclass
class InjectState:
    """
    Mutable state shared with tag handlers while one file is parsed.

    ``article_id`` is the flat id quizzes are registered under; ``staging``
    collects everything the current item adds to the content index.
    """
    article_id: str
    source: Path
    staging: "StagedItem"
    md: MarkdownIt


HandlerFn = Callable[[List[Token], str, InjectState], List[Token]]


@dataclass(frozen=True)
class TagHandlerEntry:
    expected: ExpectedBlock
    handler: HandlerFn


class TagRegistry:
    """Immutable mapping of annotation name -> TagHandlerEntry."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, TagHandlerEntry]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def get(self, name: str) -> Optional[TagHandlerEntry]:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def with_entry(self, name: str, expected: ExpectedBlock, handler: HandlerFn) -> "TagRegistry":
        """Return a new registry with ``name`` added (or replaced)."""
        if not is_valid_id_segment(name):
            raise ValueError(f"invalid annotation name: {name!r}")
        entries: Dict[str, TagHandlerEntry] = dict(self._entries)
        entries[name] = TagHandlerEntry(expected, handler)
        return TagRegistry(entries)


def default_registry() -> TagRegistry:
    """The registry every compilation pass uses unless told otherwise."""
    from coursegraph.quiz import QUIZ_TAG, QUIZ_BLOCK, inject_quiz

    return TagRegistry().with_entry(QUIZ_TAG, QUIZ_BLOCK, inject_quiz)


# ============================================================================
# Token cursor
# ============================================================================

class TokenCursor:
    """Forward cursor over a token list with lookahead."""

    def __init__(self, tokens: Sequence[Token]):
        self._tokens = list(tokens)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self._pos + offset
        if i < len(self._tokens):
            return self._tokens[i]
        return None

    def advance(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self._pos += 1
        return token

    def skip(self, n: int) -> None:
        self._pos = min(self._pos + n, len(self._tokens))

    def take_block(self) -> List[Token]:
        """
        Consume one block: the next token plus, if it opens a container,
        everything up to and including its matching close.
        """
        first = self.advance()
        if first is None:
            return []
        block = [first]
        depth = first.nesting
        while depth > 0:
            token = self.advance()
            if token is None:
                break
            depth += token.nesting
            block.append(token)
        return block


# ============================================================================
# Annotation matching
# ============================================================================

@dataclass(frozen=True)
class AnnotationTag:
    name: str
    data: str


def match_annotation(cursor: TokenCursor) -> Optional[Token]:
    """
    Return the text token if the cursor sits on
    ``paragraph_open, inline[text("@...")], paragraph_close``, else None.

    Paragraphs with soft breaks or inline markup are ordinary prose.
    """
    opening, inline, closing = cursor.peek(0), cursor.peek(1), cursor.peek(2)
    if opening is None or opening.type != "paragraph_open":
        return None
    if inline is None or inline.type != "inline":
        return None
    children = inline.children or []
    if len(children) != 1 or children[0].type != "text":
        return None
    if not children[0].content.startswith(ANNOTATION_PREFIX):
        return None
    if closing is None or closing.type != "paragraph_close":
        return None
    return children[0]


def parse_annotation(text: str, source: Optional[Path] = None, line: Optional[int] = None) -> AnnotationTag:
    """Split ``@name;data`` into its parts and check for whitespace."""
    body = text[len(ANNOTATION_PREFIX):]
    name, _, data = body.partition(DATA_SEPARATOR)
    context = {"annotation": text}
    if source is not None:
        context["file"] = str(source)
    if line is not None:
        context["line"] = line

    if not name:
        raise InvalidAnnotationSyntax(
            message="Annotation is missing a tag name",
            suggestion="Write annotations as @name or @name;data",
            context=context,
        )
    if any(c.isspace() for c in name) or any(c.isspace() for c in data):
        raise InvalidAnnotationSyntax(
            message=f"`@` annotations cannot contain whitespace: {text!r}",
            suggestion="Remove spaces from the tag and its data, and keep the annotation on its own line.",
            context=context,
        )
    return AnnotationTag(name, data)


def _line_of(token: Token) -> Optional[int]:
    return token.map[0] + 1 if token.map else None


def inject(tokens: Sequence[Token], registry: TagRegistry, state: InjectState) -> List[Token]:
    """
    Replace every annotation + following block with its handler's tokens.

    Raises:
        InvalidAnnotationSyntax, UnknownAnnotationTag, AnnotationBlockMismatch,
        or whatever the handler raises. Processing of the file stops at the
        first failure.
    """
    out: List[Token] = []
    cursor = TokenCursor(tokens)

    while not cursor.at_end():
        text = match_annotation(cursor)
        if text is None:
            out.append(cursor.advance())
            continue

        line = _line_of(cursor.peek())
        cursor.skip(3)
        tag = parse_annotation(text.content, state.source, line)

        entry = registry.get(tag.name)
        if entry is None:
            raise UnknownAnnotationTag(
                message=f"Unknown `@` tag: {tag.name}",
                suggestion=f"Known tags: {', '.join(registry.names()) or '(none)'}",
                context={"file": str(state.source), "line": line, "tag": tag.name},
            )

        following = cursor.peek()
        if following is None or not entry.expected.matches(following):
            raise AnnotationBlockMismatch(
                message=(
                    f"@{tag.name} must be followed by a {entry.expected.describe()}, "
                    f"found {describe_token(following)}"
                ),
                suggestion="Put the block directly under the annotation line.",
                context={
                    "file": str(state.source),
                    "line": line,
                    "expected": entry.expected.describe(),
                    "actual": describe_token(following),
                },
            )

        block = cursor.take_block()
        logger.debug("@%s;%s at %s:%s consumed %d token(s)", tag.name, tag.data, state.source, line, len(block))
        out.extend(entry.handler(block, tag.data, state))

    return out
