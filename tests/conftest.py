# tests/conftest.py
"""
Pytest configuration and shared fixtures for CourseGraph tests
"""
import pytest
from pathlib import Path
from typing import Callable, Dict

from coursegraph.markdown_parse import make_parser


INTRO_ARTICLE = '''---
title = "Introduction"
---
# Welcome

Some text about `print`.

@quiz;first
```toml
question = "What is 2 + 2?"

[[answers]]
text = "4"
correct = true
response = "Yes"

[[answers]]
text = "5"
response = "Count again"
```
'''

EXERCISE_CONFIG = '''title = "Sum a list"

[sum_list]
inputs = ["list[int]"]
output = "int"
'''

WARMUP_QUIZ = '''question = "Which keyword starts a loop?"

[[answers]]
text = "`for`"
correct = true

[[answers]]
text = "`def`"
'''


def article_text(title: str, body: str = "Body text.\n", extra: str = "") -> str:
    return f'---\ntitle = "{title}"\n{extra}---\n{body}'


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    """Keep the user's home config and COURSEGRAPH_* variables out of tests"""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in ("COURSEGRAPH_INPUT", "COURSEGRAPH_OUTPUT", "COURSEGRAPH_DEBOUNCE", "COURSEGRAPH_SKIP_INVALID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """Empty content directory"""
    root = tmp_path / "courses"
    root.mkdir()
    return root


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    """Output directory (kept outside the content directory)"""
    return tmp_path / "rendered"


@pytest.fixture
def write_tree(content_root: Path) -> Callable[[Dict[str, str]], Path]:
    """Write {relative path: text} under the content root; '/'-suffixed keys become directories"""
    def _write(files: Dict[str, str]) -> Path:
        for rel, text in files.items():
            target = content_root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        return content_root

    return _write


@pytest.fixture
def exercise_files() -> Callable[..., Dict[str, str]]:
    """Files of a valid exercise directory, keyed relative to the content root"""
    def _files(prefix: str = "loops-sum", exercise_id: str = "loops-sum") -> Dict[str, str]:
        return {
            f"{prefix}/config.toml": EXERCISE_CONFIG,
            f"{prefix}/instructions.md": "Write `sum_list`.\n",
            f"{prefix}/src/{exercise_id}.py": "def sum_list(xs):\n    pass\n",
            f"{prefix}/src/generator.py": "print([1, 2, 3])\n",
        }

    return _files


@pytest.fixture
def sample_course(write_tree, exercise_files) -> Path:
    """
    A course with one article (containing a quiz), one exercise and one
    standalone quiz, plus a top-level article outside any course.
    """
    files = {
        "python-101/course.toml": 'title = "Python 101"\ndescription = "Basics"\n',
        "python-101/01-intro/article.md": INTRO_ARTICLE,
        "python-101/warmup/quiz.toml": WARMUP_QUIZ,
        "standalone/article.md": article_text("Standalone"),
    }
    files.update(exercise_files(prefix="python-101/loops-sum"))
    return write_tree(files)


@pytest.fixture
def article():
    """article_text() as a fixture: article("Title", body) -> article.md text"""
    return article_text


@pytest.fixture
def md():
    return make_parser()
