# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
state.py - The content index and how it is built and published

- StagedItem collects everything one item adds to the index.
- IndexBuilder merges staged items, one item at a time, so an item that
  fails halfway never leaves partial entries behind.
- ContentIndex is the immutable result of one compilation pass.
- ContentStore holds the currently published index behind a
  read-preferring read/write lock; publishing is one swap.
"""

from __future__ import annotations

import logging
import shutil
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Tuple

from coursegraph.errors import (
    ConfigDeserializationError,
    ContentNotFoundError,
    IoError,
    SchemaViolation,
    io_error,
)
from coursegraph.models import ArticleConfig, Course, Exercise, ItemKind, Quiz
from coursegraph.security_utils import is_safe_path, validate_id, validate_path_id

logger = logging.getLogger(__name__)

QuizKey = Tuple[str, str]


# ============================================================================
# Building
# ============================================================================

@dataclass
class StagedItem:
    """Index entries of one item, committed together or not at all."""
    path_id: str
    owners: Dict[str, ItemKind] = field(default_factory=dict)
    quizzes: Dict[QuizKey, Quiz] = field(default_factory=dict)
    article_configs: Dict[str, ArticleConfig] = field(default_factory=dict)
    articles: Dict[str, Path] = field(default_factory=dict)
    exercises: Dict[str, Exercise] = field(default_factory=dict)
    courses: Dict[str, Course] = field(default_factory=dict)

    def add_quiz(self, article_id: str, quiz_id: str, quiz: Quiz, source: Optional[Path] = None) -> None:
        key = (article_id, quiz_id)
        if key in self.quizzes:
            raise ConfigDeserializationError(
                message=f"Quiz id {quiz_id!r} is used twice in {article_id!r}",
                suggestion="Give every @quiz in a file its own id.",
                context={"file": str(source) if source else self.path_id},
            )
        self.quizzes[key] = quiz

    def add_article(self, config: ArticleConfig, article_id: str, path: Path) -> None:
        self.owners[article_id] = ItemKind.ARTICLE
        self.article_configs[article_id] = config
        self.articles[article_id] = path

    def add_exercise(self, exercise: Exercise) -> None:
        self.owners[exercise.id] = ItemKind.EXERCISE
        self.exercises[exercise.id] = exercise

    def add_standalone_quiz(self, quiz_item_id: str) -> None:
        self.owners[quiz_item_id] = ItemKind.QUIZ

    def add_course(self, course: Course) -> None:
        self.courses[course.id] = course


class IndexBuilder:
    """Accumulates committed items for one compilation pass."""

    def __init__(self, build_dir: Path):
        self.build_dir = build_dir
        self._owners: Dict[str, Tuple[ItemKind, str]] = {}
        self._quizzes: Dict[QuizKey, Quiz] = {}
        self._article_configs: Dict[str, ArticleConfig] = {}
        self._articles: Dict[str, Path] = {}
        self._exercises: Dict[str, Exercise] = {}
        self._courses: Dict[str, Course] = {}

    def stage(self, path_id: str) -> StagedItem:
        return StagedItem(path_id)

    def commit(self, staged: StagedItem) -> None:
        """
        Merge a staged item. Checks everything before writing anything.

        Raises:
            SchemaViolation: a flat id is already owned by another item
        """
        for flat_id in staged.owners:
            if flat_id in self._owners:
                _, other = self._owners[flat_id]
                raise SchemaViolation(
                    message=f"Duplicate id {flat_id!r}",
                    suggestion=(
                        "Ids of articles, exercises and quizzes must be unique across "
                        "all courses. Rename one directory or set `id` in the header."
                    ),
                    context={"id": staged.path_id, "also_used_by": other},
                )
        for key in staged.quizzes:
            if key in self._quizzes:
                raise ConfigDeserializationError(
                    message=f"Quiz {key[1]!r} of {key[0]!r} is defined twice",
                    context={"id": staged.path_id},
                )

        for flat_id, kind in staged.owners.items():
            self._owners[flat_id] = (kind, staged.path_id)
        self._quizzes.update(staged.quizzes)
        self._article_configs.update(staged.article_configs)
        self._articles.update(staged.articles)
        self._exercises.update(staged.exercises)
        self._courses.update(staged.courses)

    def build(self) -> "ContentIndex":
        return ContentIndex(
            build_dir=self.build_dir,
            ids={k: kind for k, (kind, _) in self._owners.items()},
            quizzes=self._quizzes,
            article_configs=self._article_configs,
            articles=self._articles,
            exercises=self._exercises,
            courses=self._courses,
        )


# ============================================================================
# Index
# ============================================================================

class ContentIndex:
    """The compiled, read-only result of one pass."""

    def __init__(
        self,
        build_dir: Optional[Path] = None,
        ids: Optional[Dict[str, ItemKind]] = None,
        quizzes: Optional[Dict[QuizKey, Quiz]] = None,
        article_configs: Optional[Dict[str, ArticleConfig]] = None,
        articles: Optional[Dict[str, Path]] = None,
        exercises: Optional[Dict[str, Exercise]] = None,
        courses: Optional[Dict[str, Course]] = None,
    ):
        self.build_dir = build_dir
        self.ids = MappingProxyType(dict(ids or {}))
        self.quizzes = MappingProxyType(dict(quizzes or {}))
        self.article_configs = MappingProxyType(dict(article_configs or {}))
        self.articles = MappingProxyType(dict(articles or {}))
        self.exercises = MappingProxyType(dict(exercises or {}))
        self.courses = MappingProxyType(dict(courses or {}))

    @classmethod
    def empty(cls) -> "ContentIndex":
        return cls()

    # ---------- queries ----------

    def get_quiz(self, article_id: str, quiz_id: str) -> Optional[Quiz]:
        """Get a quiz by the id of the article it lives in and its own id"""
        return self.quizzes.get((article_id, quiz_id))

    def quizzes_for(self, article_id: str) -> Dict[str, Quiz]:
        return {q: quiz for (a, q), quiz in self.quizzes.items() if a == article_id}

    def get_article_config(self, article_id: str) -> Optional[ArticleConfig]:
        return self.article_configs.get(article_id)

    def has_id(self, article_id: str) -> bool:
        """Check if an article exists"""
        return article_id in self.article_configs

    def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        return self.exercises.get(exercise_id)

    def get_course(self, course_id: str) -> Optional[Course]:
        """Courses are keyed by path id (``python-101/week-1``)"""
        validate_path_id(course_id)
        return self.courses.get(course_id)

    def read_article(self, article_id: str) -> str:
        """
        Read the rendered HTML of an article.

        The id is validated before anything touches the filesystem.

        Raises:
            IdValidationError: id contains characters outside [A-Za-z0-9_-]
            ContentNotFoundError: no such article
            IoError: the rendered file could not be read
        """
        validate_id(article_id)

        path = self.articles.get(article_id)
        if path is None:
            raise ContentNotFoundError(
                message=f"Article id not found: {article_id}",
                context={"id": article_id},
            )
        if self.build_dir is None or not is_safe_path(self.build_dir, path):
            raise IoError(
                message=f"Rendered file for {article_id!r} is outside the build directory",
                context={"id": article_id, "path": str(path)},
            )
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise io_error(path, e)

    # ---------- checks / export ----------

    def validate(self) -> List[str]:
        """Return a list of consistency problems; empty when publishable."""
        issues = []
        if set(self.articles) != set(self.article_configs):
            issues.append("article bodies and article configs do not cover the same ids")
        for article_id, path in self.articles.items():
            if self.build_dir is None or not is_safe_path(self.build_dir, path):
                issues.append(f"{article_id}: rendered body outside build directory")
            elif not path.is_file():
                issues.append(f"{article_id}: rendered body missing at {path}")
        for article_id, quiz_id in self.quizzes:
            if article_id not in self.ids:
                issues.append(f"quiz {quiz_id!r} belongs to unknown id {article_id!r}")
        for course in self.courses.values():
            for child in course.children:
                if child.kind is ItemKind.COURSE:
                    known = child.path_id in self.courses
                else:
                    known = self.ids.get(child.id) is child.kind
                if not known:
                    issues.append(f"course {course.id!r} lists missing child {child.path_id!r}")
        return issues

    def counts(self) -> Dict[str, int]:
        return {
            "courses": len(self.courses),
            "articles": len(self.articles),
            "exercises": len(self.exercises),
            "quizzes": len(self.quizzes),
        }

    def to_dict(self) -> dict:
        """JSON-ready summary (written as index.json next to the rendered files)."""
        def rel(path: Path) -> str:
            if self.build_dir is None:
                return str(path)
            return path.relative_to(self.build_dir).as_posix()

        return {
            "courses": {cid: c.to_dict() for cid, c in sorted(self.courses.items())},
            "articles": {
                aid: {"config": cfg.model_dump(), "body": rel(self.articles[aid])}
                for aid, cfg in sorted(self.article_configs.items())
            },
            "exercises": {eid: e.to_dict() for eid, e in sorted(self.exercises.items())},
            "quizzes": {
                f"{a}/{q}": quiz.model_dump() for (a, q), quiz in sorted(self.quizzes.items())
            },
        }


# ============================================================================
# Publishing
# ============================================================================

class ReadWriteLock:
    """
    Read-preferring lock: readers share access while no writer holds it;
    a writer waits until all readers are gone.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class ContentStore:
    """The published index, shared between the compiler and readers."""

    def __init__(self, index: Optional[ContentIndex] = None):
        self._index = index or ContentIndex.empty()
        self._lock = ReadWriteLock()

    @contextmanager
    def reading(self) -> Iterator[ContentIndex]:
        """Hold the read lock and yield the current index."""
        with self._lock.read():
            yield self._index

    @property
    def index(self) -> ContentIndex:
        """
        Snapshot of the current index. The lock is released on return, so a
        later publish may delete its build directory; read rendered files
        through reading() or the query methods below.
        """
        with self._lock.read():
            return self._index

    def publish(self, index: ContentIndex) -> ContentIndex:
        """
        Swap in a new index and delete the previous build directory.

        The delete happens under the write lock, so no reader can be in the
        middle of reading an old rendered file.
        """
        with self._lock.write():
            previous, self._index = self._index, index
            old_dir = previous.build_dir
            if old_dir is not None and old_dir != index.build_dir and old_dir.exists():
                try:
                    shutil.rmtree(old_dir)
                except OSError as e:
                    logger.warning("Could not remove previous build %s: %s", old_dir, e)
        return previous

    # Query surface for the serving layer

    def get_quiz(self, article_id: str, quiz_id: str) -> Optional[Quiz]:
        with self.reading() as index:
            return index.get_quiz(article_id, quiz_id)

    def get_article_config(self, article_id: str) -> Optional[ArticleConfig]:
        with self.reading() as index:
            return index.get_article_config(article_id)

    def has_id(self, article_id: str) -> bool:
        with self.reading() as index:
            return index.has_id(article_id)

    def read_article(self, article_id: str) -> str:
        with self.reading() as index:
            return index.read_article(article_id)

    def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        with self.reading() as index:
            return index.get_exercise(exercise_id)

    def get_course(self, course_id: str) -> Optional[Course]:
        with self.reading() as index:
            return index.get_course(course_id)
