# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

"""
Custom exception classes with readable error messages for CourseGraph

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context (offending id, path, file)
"""
from pathlib import Path
from typing import Optional, Dict, Any, List


class CourseGraphError(Exception):
    """Base exception for all CourseGraph errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)

    def with_context(self, **context: Any) -> "CourseGraphError":
        """
        Attach context while the error propagates up the item tree.

        Keys already present are kept, so the innermost (most specific)
        id/path wins.
        """
        for key, value in context.items():
            self.context.setdefault(key, value)
        self.args = (self.format_message(),)
        return self

    def short(self) -> str:
        """One-line form for log output."""
        where = self.context.get("id") or self.context.get("path") or self.context.get("file")
        if where:
            return f"{self.__class__.__name__} [{where}]: {self.message}"
        return f"{self.__class__.__name__}: {self.message}"


class ConfigurationError(CourseGraphError):
    """Configuration is missing or invalid"""
    pass


class SchemaViolation(CourseGraphError):
    """Directory entries do not match the schema of the content kind"""
    pass


class FrontmatterFormatError(CourseGraphError):
    """Frontmatter header is missing, unterminated or not UTF-8"""
    pass


class ConfigDeserializationError(CourseGraphError):
    """Structured header, quiz or exercise config failed to deserialize"""
    pass


class InvalidAnnotationSyntax(CourseGraphError):
    """An `@name;data` annotation is malformed"""
    pass


class UnknownAnnotationTag(CourseGraphError):
    """An annotation names a tag with no registered handler"""
    pass


class AnnotationBlockMismatch(CourseGraphError):
    """The block after an annotation is not the shape its tag expects"""
    pass


class UnsupportedLanguage(CourseGraphError):
    """A source file extension does not map to a known language"""
    pass


class InvalidSignature(CourseGraphError):
    """An exercise function signature is malformed"""
    pass


class IdValidationError(CourseGraphError):
    """An id contains characters outside [A-Za-z0-9_-]"""
    pass


class IoError(CourseGraphError):
    """Reading or writing a file failed"""
    pass


class ContentNotFoundError(CourseGraphError):
    """A lookup named an id that is not in the content index"""
    pass


class CompilationError(CourseGraphError):
    """One compilation pass failed; wraps every item-level error"""

    def __init__(self, errors: List[CourseGraphError], root: Optional[Path] = None):
        self.errors = list(errors)
        summary = "\n".join(f"  - {e.short()}" for e in self.errors)
        super().__init__(
            message=f"Compilation failed with {len(self.errors)} error(s):\n{summary}",
            suggestion="Fix the listed items and save again; the previous build is still being served.",
            context={"root": str(root)} if root else None,
        )


# Specific error factory functions

def missing_entry_error(path: Path, entry: str, what: Optional[str] = None) -> SchemaViolation:
    """Create error for a required directory entry that is missing"""
    label = f"{what} ({entry})" if what else entry
    return SchemaViolation(
        message=f"Missing required entry: {label}",
        suggestion=f"Create {path / entry}",
        context={"path": str(path), "missing": entry},
    )


def unexpected_entry_error(path: Path, entry: str, allowed: List[str]) -> SchemaViolation:
    """Create error for a directory entry the schema does not allow"""
    return SchemaViolation(
        message=f"Unexpected entry: {entry}",
        suggestion=(
            "Remove or rename it. Allowed entries here:\n" +
            "\n".join(f"  - {a}" for a in allowed)
        ),
        context={"path": str(path), "unexpected": entry},
    )


def invalid_id_error(value: str, bad_char: Optional[str] = None) -> IdValidationError:
    """Create error for an id with illegal characters"""
    detail = f" (found {bad_char!r})" if bad_char is not None else ""
    return IdValidationError(
        message=f"Invalid id {value!r}{detail}",
        suggestion="Ids may only contain letters, digits, '-' and '_'",
        context={"value": value},
    )


def config_error(source: Path, cause: Exception, what: str = "config") -> ConfigDeserializationError:
    """Create error for a TOML/pydantic deserialization failure"""
    return ConfigDeserializationError(
        message=f"Could not deserialize {what} in {source.name}",
        suggestion="Check field names and types; unknown fields are rejected.",
        context={"file": str(source)},
        cause=cause,
    )


def io_error(path: Path, cause: OSError, action: str = "reading") -> IoError:
    """Wrap an OSError with the path it happened on"""
    return IoError(
        message=f"I/O error while {action} {path}",
        context={"path": str(path)},
        cause=cause,
    )
