# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
items.py - Resolve content directories into typed items

Every directory under the content root is one item. Its kind is detected
from what it contains, then its entries are checked against that kind's
schema:

    Kind       Detected by                          Required / optional
    --------   ----------------------------------   ---------------------------------
    article    article.md                           article.md
    quiz       quiz.toml                            quiz.toml
    exercise   config.toml, instructions.md, src/   config.toml, instructions.md,
                                                    src/<id>.<ext>, src/generator.<ext>
                                                    (+ src/*.<ext>)
    course     only subdirectories                  1+ child items (+ course.toml)

Directory names are id segments; a course's children get ids like
``python-101/loops``. Dotfiles are ignored.

A failing item is recorded in the context and excluded along with its
subtree; its siblings are still resolved so one pass reports every problem.
Whether the pass then fails is decided by compile.py.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set

from markdown_it import MarkdownIt
from pydantic import ValidationError

from coursegraph.errors import (
    CourseGraphError,
    SchemaViolation,
    config_error,
    io_error,
    missing_entry_error,
    unexpected_entry_error,
)
from coursegraph.exercise import GENERATOR_STEM, link_exercise, read_text, read_toml, split_name
from coursegraph.frontmatter_split import load_frontmatter
from coursegraph.inject import InjectState, TagRegistry
from coursegraph.markdown_parse import parse_md
from coursegraph.models import (
    Article,
    ArticleConfig,
    ChildRef,
    ContentItem,
    Course,
    CourseConfig,
    Exercise,
    ItemKind,
    QuizItem,
)
from coursegraph.quiz import STANDALONE_QUIZ_ID, parse_quiz, render_quiz
from coursegraph.security_utils import safe_join, validate_id
from coursegraph.state import IndexBuilder, StagedItem

logger = logging.getLogger(__name__)

ARTICLE_FILE = "article.md"
QUIZ_FILE = "quiz.toml"
EXERCISE_CONFIG = "config.toml"
EXERCISE_INSTRUCTIONS = "instructions.md"
EXERCISE_SRC = "src"
COURSE_CONFIG = "course.toml"


# ============================================================================
# Directory listing
# ============================================================================

@dataclass(frozen=True)
class DirEntry:
    name: str
    is_dir: bool

    @property
    def label(self) -> str:
        return self.name + "/" if self.is_dir else self.name


class DirContents:
    """Sorted, dotfile-free listing of one directory."""

    def __init__(self, path: Path, entries: List[DirEntry]):
        self.path = path
        self.entries = entries

    @classmethod
    def read(cls, path: Path) -> "DirContents":
        try:
            entries = [
                DirEntry(p.name, p.is_dir())
                for p in path.iterdir()
                if not p.name.startswith(".")
            ]
        except OSError as e:
            raise io_error(path, e, action="listing")
        return cls(path, sorted(entries, key=lambda e: e.name))

    def has_file(self, name: str) -> bool:
        return any(e.name == name and not e.is_dir for e in self.entries)

    def has_dir(self, name: str) -> bool:
        return any(e.name == name and e.is_dir for e in self.entries)

    def files(self) -> List[DirEntry]:
        return [e for e in self.entries if not e.is_dir]

    def dirs(self) -> List[DirEntry]:
        return [e for e in self.entries if e.is_dir]


def check_entries(contents: DirContents, required: Set[str], optional: Set[str] = frozenset()) -> None:
    """
    Enforce a required-plus-optional schema. Directory entries are written
    with a trailing slash (``src/``).
    """
    present = {e.label for e in contents.entries}
    for name in sorted(required):
        if name not in present:
            raise missing_entry_error(contents.path, name)
    allowed = required | optional
    for name in sorted(present):
        if name not in allowed:
            raise unexpected_entry_error(contents.path, name, sorted(allowed))


# ============================================================================
# Compilation context
# ============================================================================

@dataclass
class CompileContext:
    """Mutable state of one pass while the tree is walked."""
    root: Path
    build_dir: Path
    builder: IndexBuilder
    registry: TagRegistry
    md: MarkdownIt
    skip_paths: Set[Path] = field(default_factory=set)
    errors: List[CourseGraphError] = field(default_factory=list)
    id_stack: List[str] = field(default_factory=list)

    @property
    def path_id(self) -> str:
        return "/".join(self.id_stack)

    @contextmanager
    def push(self, segment: str) -> Iterator[str]:
        self.id_stack.append(segment)
        try:
            yield self.path_id
        finally:
            self.id_stack.pop()

    def fail(self, error: CourseGraphError) -> None:
        self.errors.append(error)
        logger.debug("item failed: %s", error.short())


# ============================================================================
# Kinds
# ============================================================================

def detect_kind(contents: DirContents) -> ItemKind:
    if contents.has_file(ARTICLE_FILE):
        return ItemKind.ARTICLE
    if contents.has_file(QUIZ_FILE):
        return ItemKind.QUIZ
    if (contents.has_file(EXERCISE_CONFIG) or contents.has_file(EXERCISE_INSTRUCTIONS)
            or contents.has_dir(EXERCISE_SRC)):
        return ItemKind.EXERCISE
    if not contents.dirs():
        raise SchemaViolation(
            message="Cannot tell what kind of item this directory is",
            suggestion=(
                f"Add {ARTICLE_FILE} (article), {QUIZ_FILE} (quiz), "
                f"{EXERCISE_CONFIG} + {EXERCISE_INSTRUCTIONS} + src/ (exercise), "
                "or child directories (course)"
            ),
            context={"path": str(contents.path)},
        )
    return ItemKind.COURSE


def infer_title(dirname: str) -> str:
    """'02-control_flow' -> 'Control Flow'"""
    nice_name = re.sub(r"^\d+-", "", dirname)
    return nice_name.replace("-", " ").replace("_", " ").title()


def rendered_path(ctx: CompileContext) -> Path:
    *parents, leaf = ctx.id_stack
    return safe_join(ctx.build_dir, *parents, leaf + ".html")


def resolve_article(path: Path, contents: DirContents, ctx: CompileContext, staged: StagedItem) -> Article:
    check_entries(contents, {ARTICLE_FILE})
    source = path / ARTICLE_FILE
    config, body = load_frontmatter(source, ArticleConfig)
    article_id = config.id or path.name

    state = InjectState(article_id=article_id, source=source, staging=staged, md=ctx.md)
    html = parse_md(body, ctx.registry, state)

    out = rendered_path(ctx)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(html, encoding="utf-8")
    except OSError as e:
        raise io_error(out, e, action="writing")

    staged.add_article(config, article_id, out)
    return Article(id=article_id, path_id=ctx.path_id, config=config)


def resolve_quiz(path: Path, contents: DirContents, ctx: CompileContext, staged: StagedItem) -> QuizItem:
    check_entries(contents, {QUIZ_FILE})
    source = path / QUIZ_FILE
    quiz = render_quiz(parse_quiz(read_text(source), source), ctx.md)
    staged.add_standalone_quiz(path.name)
    staged.add_quiz(path.name, STANDALONE_QUIZ_ID, quiz, source=source)
    return QuizItem(id=path.name, path_id=ctx.path_id, quiz=quiz)


def resolve_exercise(path: Path, contents: DirContents, ctx: CompileContext, staged: StagedItem) -> Exercise:
    check_entries(contents, {EXERCISE_CONFIG, EXERCISE_INSTRUCTIONS, EXERCISE_SRC + "/"})

    src = DirContents.read(path / EXERCISE_SRC)
    exercise_id = path.name
    for entry in src.dirs():
        raise unexpected_entry_error(src.path, entry.label, [f"{exercise_id}.<ext>", f"{GENERATOR_STEM}.<ext>"])
    stems = {split_name(e.name)[0] for e in src.files()}
    if exercise_id not in stems:
        raise missing_entry_error(path, f"{EXERCISE_SRC}/{exercise_id}.<ext>", "Starting code")
    if GENERATOR_STEM not in stems:
        raise missing_entry_error(path, f"{EXERCISE_SRC}/{GENERATOR_STEM}.<ext>", "Test case generator")

    return link_exercise(path, [src.path / e.name for e in src.files()], ctx, staged)


def resolve_course(path: Path, contents: DirContents, ctx: CompileContext, staged: StagedItem) -> Course:
    # The course's own entries are checked before any child is touched, so
    # a broken course excludes its whole subtree.
    for entry in contents.files():
        if entry.name != COURSE_CONFIG:
            raise unexpected_entry_error(path, entry.name, [COURSE_CONFIG, "<child item>/"])
    if contents.has_file(COURSE_CONFIG):
        source = path / COURSE_CONFIG
        try:
            config = CourseConfig.model_validate(read_toml(source))
        except ValidationError as e:
            raise config_error(source, e, what="course config")
    else:
        config = CourseConfig(title=infer_title(path.name))

    children = []
    for entry in contents.dirs():
        child = resolve_item(path / entry.name, ctx)
        if child is not None:
            children.append(child)

    course = Course(id=ctx.path_id, title=config.title, description=config.description, children=children)
    staged.add_course(course)
    return course


RESOLVERS: Dict[ItemKind, Callable[[Path, DirContents, CompileContext, StagedItem], ContentItem]] = {
    ItemKind.ARTICLE: resolve_article,
    ItemKind.QUIZ: resolve_quiz,
    ItemKind.EXERCISE: resolve_exercise,
    ItemKind.COURSE: resolve_course,
}


# ============================================================================
# Walking
# ============================================================================

def resolve_item(path: Path, ctx: CompileContext) -> Optional[ChildRef]:
    """
    Resolve one directory (and, for courses, its subtree).

    Returns the item's ChildRef, or None if it failed; the error is kept in
    ``ctx.errors`` with the item's id and path attached.
    """
    if path.resolve() in ctx.skip_paths:
        return None
    try:
        validate_id(path.name)
    except CourseGraphError as e:
        ctx.fail(e.with_context(path=str(path)))
        return None

    with ctx.push(path.name) as path_id:
        staged = ctx.builder.stage(path_id)
        try:
            contents = DirContents.read(path)
            kind = detect_kind(contents)
            item = RESOLVERS[kind](path, contents, ctx, staged)
            ctx.builder.commit(staged)
            ref = item.ref()
        except CourseGraphError as e:
            ctx.fail(e.with_context(id=path_id, path=str(path)))
            return None

    logger.debug("resolved %s %s", ref.kind.value, ref.path_id)
    return ref


def resolve_root(root: Path, ctx: CompileContext) -> List[ChildRef]:
    """Resolve every item directory directly under the content root."""
    contents = DirContents.read(root)
    for entry in contents.files():
        logger.info("Ignoring file at content root: %s", entry.name)
    refs = []
    for entry in contents.dirs():
        ref = resolve_item(root / entry.name, ctx)
        if ref is not None:
            refs.append(ref)
    return refs
