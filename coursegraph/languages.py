"""
languages.py - Supported exercise languages and function signature types

Exercise source files are matched to a Language by extension. Function
signatures in an exercise's config.toml use a small type grammar:

    int | float | bool | string | list[<type>]

e.g. ``inputs = ["list[int]", "int"]``, ``output = "bool"``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class Language(str, Enum):
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    RUST = "rust"
    C = "c"
    CPP = "cpp"
    JAVA = "java"
    GO = "go"

    @property
    def extension(self) -> str:
        return LANGUAGE_EXTENSIONS[self]

    @classmethod
    def from_extension(cls, ext: str) -> Optional["Language"]:
        """Map a file extension (with or without the dot) to a Language."""
        return EXTENSION_LANGUAGES.get(ext.lower().lstrip("."))


LANGUAGE_EXTENSIONS = {
    Language.PYTHON: "py",
    Language.JAVASCRIPT: "js",
    Language.TYPESCRIPT: "ts",
    Language.RUST: "rs",
    Language.C: "c",
    Language.CPP: "cpp",
    Language.JAVA: "java",
    Language.GO: "go",
}

EXTENSION_LANGUAGES = {ext: lang for lang, ext in LANGUAGE_EXTENSIONS.items()}


# ============================================================================
# Signature types
# ============================================================================

PRIMITIVES = ("int", "float", "bool", "string")


@dataclass(frozen=True)
class VariableType:
    """A parsed signature type. ``item`` is set only for lists."""
    name: str
    item: Optional["VariableType"] = None

    def __str__(self) -> str:
        if self.item is not None:
            return f"list[{self.item}]"
        return self.name

    @classmethod
    def parse(cls, text: str) -> "VariableType":
        """
        Parse a type expression.

        Raises:
            ValueError: on anything outside the grammar
        """
        if not isinstance(text, str):
            raise ValueError(f"type must be a string, got {type(text).__name__}")
        s = text.strip()
        if s in PRIMITIVES:
            return cls(s)
        if s.startswith("list[") and s.endswith("]"):
            return cls("list", cls.parse(s[len("list["):-1]))
        raise ValueError(f"unknown type {text!r} (expected one of {', '.join(PRIMITIVES)} or list[T])")

    def accepts(self, value: Any) -> bool:
        """True if a JSON-style Python value fits this type."""
        if self.name == "int":
            return isinstance(value, int) and not isinstance(value, bool)
        if self.name == "float":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.name == "bool":
            return isinstance(value, bool)
        if self.name == "string":
            return isinstance(value, str)
        if self.name == "list":
            return isinstance(value, list) and all(self.item.accepts(v) for v in value)
        return False


@dataclass(frozen=True)
class Signature:
    """A declared exercise function: ``name(inputs...) -> output``."""
    name: str
    inputs: Tuple[VariableType, ...]
    output: VariableType

    def __str__(self) -> str:
        args = ", ".join(str(t) for t in self.inputs)
        return f"{self.name}({args}) -> {self.output}"
