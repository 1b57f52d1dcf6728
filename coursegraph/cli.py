# cli.py - Command line interface for CourseGraph
"""
CourseGraph CLI - compile course content into a content index

COMMANDS:
    coursegraph build [--skip-invalid]      Compile once into the output directory
    coursegraph check                       Compile into a temp dir, report problems
    coursegraph watch                       Compile, then recompile on every change
    coursegraph init                        Write a coursegraph.yaml template
    coursegraph version                     Show version information

GLOBAL OPTIONS:
    --input PATH      Content directory (default: courses, or input_dir in coursegraph.yaml)
    --output PATH     Output root (default: rendered)
    -v / -vv          More logging

EXAMPLES:
    # Compile the course tree once
    coursegraph build

    # Keep rebuilding while editing
    coursegraph --input ~/courses watch
"""

import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from coursegraph import __version__
from coursegraph.compile import compile_dir, prune_builds
from coursegraph.config_utils import CourseGraphConfig, create_config_template, get_config
from coursegraph.errors import CompilationError, CourseGraphError
from coursegraph.icons import LEVEL_ICONS, SUCCESS, ERROR, kind_icon
from coursegraph.watch_and_compile import watch_and_compile


# -----------------------------------------------------------------------------
# Logging setup with icons
# -----------------------------------------------------------------------------

# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, "")
        base = super().format(record)
        return f"{icon} {base}" if icon else base


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)


DOT_LINE = "." * 70


def fence(label: str):
    ts = datetime.now().strftime("%H:%M:%S")
    click.echo(DOT_LINE)
    click.echo(f"[{ts}] {label}")
    click.echo()


# ============================================================================
# CLI
# ============================================================================

class CourseGraphContext:
    """Shared context for CLI commands"""

    def __init__(self, config: CourseGraphConfig):
        self.config = config


pass_context = click.make_pass_decorator(CourseGraphContext)


@click.group()
@click.option("--input", "input_dir", type=click.Path(path_type=Path), help="Content directory")
@click.option("--output", "output_dir", type=click.Path(path_type=Path), help="Output root directory")
@click.option("-v", "--verbose", count=True, help="More logging (-vv for debug)")
@click.pass_context
def cli(ctx, input_dir: Optional[Path], output_dir: Optional[Path], verbose: int):
    """CourseGraph - compile course content into a queryable content index"""
    setup_logging(verbose)
    try:
        config = get_config()
    except CourseGraphError as e:
        raise click.ClickException(e.message)
    if input_dir is not None:
        config.input_dir = input_dir
        config._sources["input_dir"] = "cli"
    if output_dir is not None:
        config.output_dir = output_dir
        config._sources["output_dir"] = "cli"
    ctx.obj = CourseGraphContext(config)


def _report_failure(error: CourseGraphError):
    if isinstance(error, CompilationError):
        click.echo(f"{ERROR} Build failed with {len(error.errors)} error(s)", err=True)
        for item_error in error.errors:
            click.echo(str(item_error), err=True)
    else:
        click.echo(str(error), err=True)


@cli.command()
@click.option("--skip-invalid", is_flag=True, help="Leave out failing items instead of failing")
@pass_context
def build(ctx: CourseGraphContext, skip_invalid: bool):
    """Compile the content directory once"""
    config = ctx.config
    if skip_invalid:
        config.skip_invalid = True

    fence("BUILD")
    try:
        index = compile_dir(
            config.resolved_input(),
            config.resolved_output(),
            skip_invalid=config.skip_invalid,
        )
    except CourseGraphError as e:
        _report_failure(e)
        raise SystemExit(1)

    prune_builds(config.resolved_output(), keep=index.build_dir)

    for course_id, course in sorted(index.courses.items()):
        click.echo(f"{kind_icon('course')} {course_id}: {course.title} ({len(course.children)} items)")
    counts = index.counts()
    click.echo()
    click.echo(
        f"{SUCCESS} Built {counts['articles']} article(s), {counts['exercises']} exercise(s), "
        f"{counts['quizzes']} quiz(zes), {counts['courses']} course(s)"
    )
    click.echo(f"   Output: {index.build_dir}")


@cli.command()
@pass_context
def check(ctx: CourseGraphContext):
    """Compile into a temporary directory and report problems"""
    config = ctx.config
    with tempfile.TemporaryDirectory(prefix="coursegraph-check-") as tmp:
        try:
            index = compile_dir(config.resolved_input(), Path(tmp), skip_invalid=False)
        except CourseGraphError as e:
            _report_failure(e)
            raise SystemExit(1)
    counts = index.counts()
    click.echo(f"{SUCCESS} No problems found ({sum(counts.values())} entries)")


@cli.command()
@pass_context
def watch(ctx: CourseGraphContext):
    """Compile, then recompile whenever content changes"""
    config = ctx.config
    issues = config.validate()
    if issues:
        raise click.ClickException("; ".join(issues))
    fence("WATCH")
    watch_and_compile(config)


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing coursegraph.yaml")
def init(force: bool):
    """Write a coursegraph.yaml template in the current directory"""
    target = Path.cwd() / "coursegraph.yaml"
    if target.exists() and not force:
        raise click.ClickException(f"{target.name} already exists (use --force to overwrite)")
    target.write_text(create_config_template(), encoding="utf-8")
    click.echo(f"{SUCCESS} Wrote {target}")


@cli.command()
def version():
    """Show version information"""
    click.echo(f"CourseGraph CLI v{__version__}")


if __name__ == "__main__":
    cli()
