"""
CourseGraph - compile course content directories into a content index

Articles, exercises, quizzes and nested courses are read from plain-text
files (markdown with TOML frontmatter, TOML configs, source files) and
compiled into a queryable index plus rendered HTML.
"""

__version__ = "1.0.0"
__author__ = "Dale Chapman"
__license__ = "MIT"

from .errors import CourseGraphError
from .compile import compile_dir
from .state import ContentIndex, ContentStore

__all__ = [
    "__version__",
    "compile_dir",
    "ContentIndex",
    "ContentStore",
    "CourseGraphError",
]
