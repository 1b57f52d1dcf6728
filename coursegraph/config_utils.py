# config_utils.py - YAML Configuration System for CourseGraph
"""
CourseGraph configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (COURSEGRAPH_INPUT, COURSEGRAPH_OUTPUT, etc.)
2. coursegraph.yaml (or coursegraph.yml) in the project root
3. ~/.coursegraph/config.yaml (global defaults)

Usage:
    from coursegraph.config_utils import get_config

    config = get_config()
    print(config.input_dir)
    print(config.watch_debounce)
"""

import logging
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

import yaml

from coursegraph.errors import ConfigurationError

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class CourseGraphConfig:
    """Complete CourseGraph configuration"""
    # Content root containing course / article / exercise directories
    input_dir: Path = Path("courses")

    # Root under which each pass writes its build directory
    output_dir: Path = Path("rendered")

    # Watch settings
    watch_debounce: float = 0.5

    # Exclude failing subtrees instead of failing the whole pass
    skip_invalid: bool = False

    # Paths (resolved at load time)
    project_root: Optional[Path] = None

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    def resolved_input(self) -> Path:
        root = self.project_root or Path.cwd()
        return (root / self.input_dir).resolve()

    def resolved_output(self) -> Path:
        root = self.project_root or Path.cwd()
        return (root / self.output_dir).resolve()

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the config is usable."""
        issues = []
        if not self.resolved_input().is_dir():
            issues.append(f"input_dir does not exist: {self.resolved_input()}")
        if self.watch_debounce < 0:
            issues.append("watch.debounce must not be negative")
        if self.resolved_output() == self.resolved_input():
            issues.append("output_dir must differ from input_dir")
        return issues

    def is_valid(self) -> bool:
        return not self.validate()


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config = CourseGraphConfig(project_root=self.project_dir)

    def load(self) -> CourseGraphConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()
        return self.config

    def _load_global_config(self):
        """Load ~/.coursegraph/config.yaml if it exists"""
        global_config = Path.home() / ".coursegraph" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load coursegraph.yaml from the project root"""
        for name in ("coursegraph.yaml", "coursegraph.yml"):
            yaml_path = self.project_dir / name
            if yaml_path.exists():
                self._load_yaml_file(yaml_path, name)
                return

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as e:
            raise ConfigurationError(
                message=f"Failed to parse {path.name}",
                suggestion="Check the YAML syntax of the file.",
                context={"file": str(path)},
                cause=e,
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must contain a mapping at the top level",
                context={"file": str(path)},
            )

        for key in ("input_dir", "output_dir"):
            if key in data:
                setattr(self.config, key, Path(str(data[key])).expanduser())
                self.config._sources[key] = source_name

        if "skip_invalid" in data:
            self.config.skip_invalid = bool(data["skip_invalid"])
            self.config._sources["skip_invalid"] = source_name

        # Handle nested watch settings
        if "watch" in data and isinstance(data["watch"], dict):
            watch = data["watch"]
            if "debounce" in watch:
                self.config.watch_debounce = _parse_float(watch["debounce"], "watch.debounce", source_name)
                self.config._sources["watch_debounce"] = source_name

        # Store any extra settings
        known_keys = {"input_dir", "output_dir", "skip_invalid", "watch"}
        for key, value in data.items():
            if key not in known_keys:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        if os.environ.get("COURSEGRAPH_INPUT"):
            self.config.input_dir = Path(os.environ["COURSEGRAPH_INPUT"]).expanduser()
            self.config._sources["input_dir"] = "env:COURSEGRAPH_INPUT"

        if os.environ.get("COURSEGRAPH_OUTPUT"):
            self.config.output_dir = Path(os.environ["COURSEGRAPH_OUTPUT"]).expanduser()
            self.config._sources["output_dir"] = "env:COURSEGRAPH_OUTPUT"

        if os.environ.get("COURSEGRAPH_DEBOUNCE"):
            self.config.watch_debounce = _parse_float(
                os.environ["COURSEGRAPH_DEBOUNCE"], "COURSEGRAPH_DEBOUNCE", "env"
            )
            self.config._sources["watch_debounce"] = "env:COURSEGRAPH_DEBOUNCE"

        skip_invalid = os.environ.get("COURSEGRAPH_SKIP_INVALID")
        if skip_invalid is not None:
            self.config.skip_invalid = skip_invalid.lower() in TRUTHY
            self.config._sources["skip_invalid"] = "env:COURSEGRAPH_SKIP_INVALID"


def _parse_float(value: Any, name: str, source: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            message=f"{name} must be a number, got {value!r}",
            context={"source": source},
            cause=e,
        )


# ============================================================================
# Public API
# ============================================================================

def get_config(project_dir: Optional[Path] = None) -> CourseGraphConfig:
    """
    Get complete CourseGraph configuration.

    Args:
        project_dir: Project directory (defaults to cwd)

    Returns:
        CourseGraphConfig with all settings resolved
    """
    loader = ConfigLoader(project_dir)
    return loader.load()


def create_config_template(include_comments: bool = True) -> str:
    """Generate a coursegraph.yaml template."""
    if include_comments:
        return '''# CourseGraph Configuration File

# Directory holding courses, articles and exercises
input_dir: courses

# Each compilation pass renders into a fresh build directory under here
output_dir: rendered

# Exclude failing items (and their subtrees) instead of failing the pass
skip_invalid: false

# Watch mode settings
watch:
  debounce: 0.5        # Seconds to wait after the first change before rebuilding
'''
    return '''input_dir: courses
output_dir: rendered
skip_invalid: false
watch:
  debounce: 0.5
'''
