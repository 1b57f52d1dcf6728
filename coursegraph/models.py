"""
models.py - Typed content items and their deserialized configs

Configs (article headers, quiz blocks, exercise config.toml) are pydantic
models that reject unknown fields. Resolved items are plain dataclasses
that point into the content index by id rather than owning rendered HTML.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coursegraph.languages import Language, Signature
from coursegraph.security_utils import is_valid_id_segment


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ============================================================================
# Configs
# ============================================================================

class ArticleConfig(StrictModel):
    """Frontmatter header of an article.md"""
    title: str
    id: Optional[str] = None
    description: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _flat_id(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_id_segment(value):
            raise ValueError("id may only contain letters, digits, '-' and '_'")
        return value


class Answer(StrictModel):
    text: str
    response: str = ""
    correct: bool = False


class Quiz(StrictModel):
    """A multiple choice question, from an @quiz block or a quiz.toml"""
    question: str
    answers: List[Answer] = Field(min_length=1)

    @model_validator(mode="after")
    def _has_correct_answer(self) -> "Quiz":
        if not any(a.correct for a in self.answers):
            raise ValueError("at least one answer must have correct = true")
        return self


class CourseConfig(StrictModel):
    """Optional course.toml"""
    title: str
    description: str = ""


class FunctionConfig(StrictModel):
    inputs: List[str]
    output: str


class ExerciseConfig(BaseModel):
    """
    config.toml of an exercise. Besides ``title`` and ``instructions`` every
    top-level table is a function signature::

        title = "Sum a list"

        [sum_list]
        inputs = ["list[int]"]
        output = "int"

    ``functions`` itself is reserved; load_exercise_config rejects a table
    with that name.
    """
    title: str
    instructions: str = ""
    functions: Dict[str, FunctionConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_functions(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        functions = dict(data.pop("functions", {}) or {})
        for key in [k for k in data if k not in ("title", "instructions")]:
            functions[key] = data.pop(key)
        data["functions"] = functions
        return data


# ============================================================================
# Items
# ============================================================================

class ItemKind(str, Enum):
    ARTICLE = "article"
    EXERCISE = "exercise"
    QUIZ = "quiz"
    COURSE = "course"


@dataclass
class ChildRef:
    """A course's pointer to one of its children."""
    path_id: str
    kind: ItemKind
    id: str


@dataclass
class Article:
    id: str
    path_id: str
    config: ArticleConfig
    kind: ItemKind = field(default=ItemKind.ARTICLE, init=False)

    def ref(self) -> ChildRef:
        return ChildRef(self.path_id, self.kind, self.id)


@dataclass
class Exercise:
    id: str
    path_id: str
    config: ExerciseConfig
    code: Dict[Language, str] = field(default_factory=dict)
    generators: Dict[Language, Path] = field(default_factory=dict)
    signatures: Dict[str, Signature] = field(default_factory=dict)
    kind: ItemKind = field(default=ItemKind.EXERCISE, init=False)

    def ref(self) -> ChildRef:
        return ChildRef(self.path_id, self.kind, self.id)

    def to_dict(self) -> dict:
        return {
            "title": self.config.title,
            "instructions": self.config.instructions,
            "functions": {name: str(sig) for name, sig in sorted(self.signatures.items())},
            "code": {lang.value: src for lang, src in self.code.items()},
        }


@dataclass
class QuizItem:
    """A quiz.toml directory; the quiz itself lives in the index."""
    id: str
    path_id: str
    quiz: Quiz
    kind: ItemKind = field(default=ItemKind.QUIZ, init=False)

    def ref(self) -> ChildRef:
        return ChildRef(self.path_id, self.kind, self.id)


@dataclass
class Course:
    id: str
    title: str
    description: str = ""
    children: List[ChildRef] = field(default_factory=list)
    kind: ItemKind = field(default=ItemKind.COURSE, init=False)

    def ref(self) -> ChildRef:
        # Courses are keyed by their path id
        return ChildRef(self.id, self.kind, self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "children": [
                {"path_id": c.path_id, "kind": c.kind.value, "id": c.id} for c in self.children
            ],
        }


ContentItem = Union[Article, Exercise, QuizItem, Course]
