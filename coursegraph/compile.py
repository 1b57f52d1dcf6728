# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
compile.py - One compilation pass over a content directory

    index = compile_dir(Path("courses"), Path("rendered"))

Each pass renders into a fresh ``build-*`` directory under the output
root and returns a new ContentIndex pointing into it. The pass is
all-or-nothing: on failure the build directory is deleted and the error
is raised; nothing that was already published is touched.

With ``skip_invalid=True`` failing items (and their subtrees) are left
out and logged, and the rest is returned.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from coursegraph.errors import CompilationError, SchemaViolation, io_error
from coursegraph.inject import TagRegistry, default_registry
from coursegraph.items import CompileContext, resolve_root
from coursegraph.markdown_parse import make_parser
from coursegraph.state import ContentIndex, IndexBuilder

logger = logging.getLogger(__name__)

BUILD_PREFIX = "build-"
INDEX_FILE = "index.json"


def compile_dir(
    input_dir: Path,
    output_root: Path,
    registry: Optional[TagRegistry] = None,
    skip_invalid: bool = False,
) -> ContentIndex:
    """
    Compile ``input_dir`` into a new build directory under ``output_root``.

    Raises:
        CompilationError: one or more items failed (or the index failed
            validation); carries every item error in ``.errors``
        IoError: the input could not be listed or output not created
    """
    input_dir = Path(input_dir).resolve()
    output_root = Path(output_root).resolve()
    registry = registry or default_registry()

    if not input_dir.is_dir():
        raise SchemaViolation(
            message=f"Content directory not found: {input_dir}",
            suggestion="Set input_dir in coursegraph.yaml or pass --input",
            context={"path": str(input_dir)},
        )

    try:
        output_root.mkdir(parents=True, exist_ok=True)
        build_dir = Path(tempfile.mkdtemp(prefix=BUILD_PREFIX, dir=output_root))
    except OSError as e:
        raise io_error(output_root, e, action="creating build directory in")

    try:
        index = _compile_into(input_dir, output_root, build_dir, registry, skip_invalid)
    except BaseException:
        shutil.rmtree(build_dir, ignore_errors=True)
        raise

    logger.info(
        "Compiled %s: %s",
        input_dir.name,
        ", ".join(f"{n} {kind}" for kind, n in index.counts().items()),
    )
    return index


def _compile_into(
    input_dir: Path,
    output_root: Path,
    build_dir: Path,
    registry: TagRegistry,
    skip_invalid: bool,
) -> ContentIndex:
    ctx = CompileContext(
        root=input_dir,
        build_dir=build_dir,
        builder=IndexBuilder(build_dir),
        registry=registry,
        md=make_parser(),
        skip_paths={output_root},
    )
    resolve_root(input_dir, ctx)

    if ctx.errors:
        if not skip_invalid:
            raise CompilationError(ctx.errors, input_dir)
        for error in ctx.errors:
            logger.warning("Skipping %s", error.short())

    index = ctx.builder.build()
    issues = index.validate()
    if issues:
        raise CompilationError(
            [SchemaViolation(message=issue, context={"build": str(build_dir)}) for issue in issues],
            input_dir,
        )

    index_file = build_dir / INDEX_FILE
    try:
        index_file.write_text(json.dumps(index.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise io_error(index_file, e, action="writing")
    return index


def prune_builds(output_root: Path, keep: Optional[Path] = None) -> int:
    """Delete old build directories under output_root except ``keep``."""
    removed = 0
    output_root = Path(output_root)
    if not output_root.is_dir():
        return 0
    keep = keep.resolve() if keep else None
    for child in output_root.iterdir():
        if child.is_dir() and child.name.startswith(BUILD_PREFIX) and child.resolve() != keep:
            shutil.rmtree(child, ignore_errors=True)
            removed += 1
    return removed
