# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
exercise.py - Link exercise sources to their declared function signatures

An exercise directory looks like:

    loops-sum/
    ├── config.toml         title + one table per function signature
    ├── instructions.md     markdown, may contain @annotations
    └── src/
        ├── loops-sum.py    starting code (one per language)
        ├── loops-sum.rs
        └── generator.py    test case generator

The directory schema itself is checked by the item resolver; this module
reads the files and builds the Exercise. Running code is not done here:
build_run_request() only assembles what the external runner consumes.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import toml
from pydantic import ValidationError

from coursegraph.errors import (
    InvalidSignature,
    UnsupportedLanguage,
    config_error,
    io_error,
)
from coursegraph.inject import InjectState
from coursegraph.languages import Language, Signature, VariableType
from coursegraph.markdown_parse import parse_md
from coursegraph.models import Exercise, ExerciseConfig

if TYPE_CHECKING:
    from coursegraph.items import CompileContext
    from coursegraph.state import StagedItem

GENERATOR_STEM = "generator"
RESERVED_FUNCTION_NAME = "functions"


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise io_error(path, e)


def read_toml(path: Path) -> Dict[str, Any]:
    text = read_text(path)
    try:
        return toml.loads(text)
    except ValueError as e:
        raise config_error(path, e)


# ============================================================================
# Config + signatures
# ============================================================================

def load_exercise_config(raw: Dict[str, Any], source: Path) -> ExerciseConfig:
    """
    Validate config.toml. Errors inside a function table are reported as
    InvalidSignature, everything else as ConfigDeserializationError.
    """
    if RESERVED_FUNCTION_NAME in raw:
        raise InvalidSignature(
            message=f"`{RESERVED_FUNCTION_NAME}` is a reserved name and cannot declare a function",
            suggestion="Rename the [functions] table to the function's real name.",
            context={"file": str(source)},
        )
    try:
        return ExerciseConfig.model_validate(raw)
    except ValidationError as e:
        bad_functions = sorted({
            str(err["loc"][1]) for err in e.errors()
            if len(err["loc"]) > 1 and err["loc"][0] == "functions"
        })
        if bad_functions:
            raise InvalidSignature(
                message=f"Malformed function signature(s): {', '.join(bad_functions)}",
                suggestion=(
                    "Each function table needs exactly:\n"
                    '  inputs = ["int", ...]\n'
                    '  output = "int"'
                ),
                context={"file": str(source)},
                cause=e,
            )
        raise config_error(source, e, what="exercise config")


def parse_signatures(config: ExerciseConfig, source: Path) -> Dict[str, Signature]:
    """Turn the declared function tables into typed signatures."""
    if not config.functions:
        raise InvalidSignature(
            message="No function signatures declared",
            suggestion='Add a table such as:\n  [solve]\n  inputs = ["int"]\n  output = "int"',
            context={"file": str(source)},
        )

    signatures = {}
    for name, function in config.functions.items():
        if not name.isidentifier():
            raise InvalidSignature(
                message=f"Function name {name!r} is not a valid identifier",
                context={"file": str(source), "function": name},
            )
        try:
            inputs = tuple(VariableType.parse(t) for t in function.inputs)
            output = VariableType.parse(function.output)
        except ValueError as e:
            raise InvalidSignature(
                message=f"Bad type in signature of {name}: {e}",
                context={"file": str(source), "function": name},
                cause=e,
            )
        signatures[name] = Signature(name, inputs, output)
    return signatures


# ============================================================================
# Sources
# ============================================================================

def split_name(filename: str) -> Tuple[str, str]:
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, ""
    return stem, ext


def collect_sources(src_files: Sequence[Path], exercise_id: str) -> Tuple[Dict[Language, str], Dict[Language, Path]]:
    """
    Map every file in src/ to a language; read starting code.

    Returns:
        (code, generators): starting code by language, generator paths by language

    Raises:
        UnsupportedLanguage: a file extension does not map to a language
    """
    code: Dict[Language, str] = {}
    generators: Dict[Language, Path] = {}
    for path in src_files:
        stem, ext = split_name(path.name)
        language = Language.from_extension(ext) if ext else None
        if language is None:
            raise UnsupportedLanguage(
                message=f"Unsupported language for src/{path.name}",
                suggestion="Supported extensions: " + ", ".join(sorted(l.extension for l in Language)),
                context={"file": str(path), "extension": ext or "(none)"},
            )
        if stem == exercise_id:
            code[language] = read_text(path)
        elif stem == GENERATOR_STEM:
            generators[language] = path
    return code, generators


def link_exercise(
    path: Path,
    src_files: Sequence[Path],
    ctx: "CompileContext",
    staged: "StagedItem",
) -> Exercise:
    """Build an Exercise from a directory that already passed the schema check."""
    exercise_id = path.name
    config_path = path / "config.toml"
    config = load_exercise_config(read_toml(config_path), config_path)
    signatures = parse_signatures(config, config_path)
    code, generators = collect_sources(src_files, exercise_id)

    instructions_path = path / "instructions.md"
    state = InjectState(article_id=exercise_id, source=instructions_path, staging=staged, md=ctx.md)
    instructions = parse_md(read_text(instructions_path), ctx.registry, state)

    exercise = Exercise(
        id=exercise_id,
        path_id=ctx.path_id,
        config=config.model_copy(update={"instructions": instructions}),
        code=code,
        generators=generators,
        signatures=signatures,
    )
    staged.add_exercise(exercise)
    return exercise


# ============================================================================
# Runner contract
# ============================================================================

@dataclass(frozen=True)
class RunRequest:
    language: Language
    source: str
    args: str


@dataclass
class RunOutput:
    stdout: str
    stderr: str
    exit_code: int
    runtime: timedelta

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunOutput":
        """Read the runner's JSON result; ``runtime`` is in seconds."""
        return cls(
            stdout=str(data.get("stdout", "")),
            stderr=str(data.get("stderr", "")),
            exit_code=int(data.get("exit_code", -1)),
            runtime=timedelta(seconds=float(data.get("runtime", 0.0))),
        )

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Runner(ABC):
    """The sandboxed code runner. Implemented outside this package."""

    @abstractmethod
    def run(self, language: Language, source: str, args: str) -> RunOutput:
        ...


def build_run_request(
    exercise: Exercise,
    language: Language,
    function: str,
    args: List[Any],
    source: Optional[str] = None,
) -> RunRequest:
    """
    Assemble runner input for one call of ``function``.

    ``source`` defaults to the exercise's starting code. Arguments are
    checked against the declared signature and serialized as JSON.
    """
    if language not in exercise.code:
        raise UnsupportedLanguage(
            message=f"Exercise {exercise.id!r} has no {language.value} starting code",
            context={"id": exercise.id, "available": sorted(l.value for l in exercise.code)},
        )
    signature = exercise.signatures.get(function)
    if signature is None:
        raise InvalidSignature(
            message=f"Exercise {exercise.id!r} declares no function {function!r}",
            context={"id": exercise.id, "declared": sorted(exercise.signatures)},
        )
    if len(args) != len(signature.inputs):
        raise InvalidSignature(
            message=f"{signature} takes {len(signature.inputs)} argument(s), got {len(args)}",
            context={"id": exercise.id},
        )
    for i, (value, expected) in enumerate(zip(args, signature.inputs)):
        if not expected.accepts(value):
            raise InvalidSignature(
                message=f"Argument {i} of {function} should be {expected}, got {value!r}",
                context={"id": exercise.id},
            )

    return RunRequest(
        language=language,
        source=exercise.code[language] if source is None else source,
        args=json.dumps({"function": function, "args": args}),
    )
