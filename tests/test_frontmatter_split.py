# tests/test_frontmatter_split.py
"""
Tests for frontmatter_split.py - TOML header / markdown body splitting
"""
import pytest
from pathlib import Path

from coursegraph.errors import ConfigDeserializationError, FrontmatterFormatError
from coursegraph.frontmatter_split import (
    dump_frontmatter,
    load_frontmatter,
    parse_header,
    split_frontmatter,
)
from coursegraph.models import ArticleConfig


SOURCE = Path("article.md")


class TestSplitFrontmatter:
    """Tests for split_frontmatter()"""

    def test_splits_header_and_body(self):
        """Header lines and body come back separately"""
        data = b'---\ntitle = "Loops"\n---\n# Loops\n\nText.\n'

        header, body = split_frontmatter(data, SOURCE)

        assert header == 'title = "Loops"\n'
        assert body == "# Loops\n\nText.\n"

    def test_blank_lines_before_opening_delimiter(self):
        """Leading blank lines are skipped"""
        data = b'\n\n---\ntitle = "x"\n---\nbody'

        header, body = split_frontmatter(data, SOURCE)

        assert header == 'title = "x"\n'
        assert body == "body"

    def test_delimiter_with_trailing_whitespace(self):
        """A delimiter line may carry trailing spaces"""
        header, body = split_frontmatter(b'---  \ntitle = "x"\n---\t\nbody\n', SOURCE)

        assert header == 'title = "x"\n'
        assert body == "body\n"

    def test_empty_body(self):
        """A header with no body is fine"""
        header, body = split_frontmatter(b'---\ntitle = "x"\n---\n', SOURCE)

        assert header == 'title = "x"\n'
        assert body == ""

    def test_body_may_contain_dashes(self):
        """Only the first closing delimiter ends the header"""
        data = b'---\ntitle = "x"\n---\nabove\n\n---\n\nbelow\n'

        _, body = split_frontmatter(data, SOURCE)

        assert body == "above\n\n---\n\nbelow\n"

    def test_missing_opening_delimiter(self):
        """A file that does not start with --- is rejected"""
        with pytest.raises(FrontmatterFormatError) as exc_info:
            split_frontmatter(b"# No header\n", SOURCE)

        assert "Did not find frontmatter header" in exc_info.value.message
        assert exc_info.value.context["file"] == "article.md"

    def test_missing_closing_delimiter(self):
        """An unterminated header is rejected"""
        with pytest.raises(FrontmatterFormatError) as exc_info:
            split_frontmatter(b'---\ntitle = "x"\n# Body\n', SOURCE)

        assert "end of frontmatter header" in exc_info.value.message

    def test_empty_file(self):
        """An empty file has no header"""
        with pytest.raises(FrontmatterFormatError):
            split_frontmatter(b"", SOURCE)

    def test_invalid_utf8_in_body(self):
        """Non UTF-8 bytes are a format error"""
        with pytest.raises(FrontmatterFormatError) as exc_info:
            split_frontmatter(b'---\ntitle = "x"\n---\n\xff\xfe\n', SOURCE)

        assert "UTF-8" in exc_info.value.message
        assert isinstance(exc_info.value.cause, UnicodeDecodeError)


class TestParseHeader:
    """Tests for parse_header()"""

    def test_valid_header(self):
        """A valid header becomes an ArticleConfig"""
        config = parse_header('title = "Loops"\ntags = ["basics"]\n', ArticleConfig, SOURCE)

        assert config.title == "Loops"
        assert config.tags == ["basics"]
        assert config.id is None

    def test_unknown_field_rejected(self):
        """Unknown header fields fail deserialization"""
        with pytest.raises(ConfigDeserializationError):
            parse_header('title = "x"\nauthor = "me"\n', ArticleConfig, SOURCE)

    def test_missing_title_rejected(self):
        """title is required"""
        with pytest.raises(ConfigDeserializationError):
            parse_header('description = "x"\n', ArticleConfig, SOURCE)

    def test_invalid_toml_rejected(self):
        """Broken TOML is a deserialization error"""
        with pytest.raises(ConfigDeserializationError) as exc_info:
            parse_header('title = "unterminated\n', ArticleConfig, SOURCE)

        assert exc_info.value.cause is not None

    def test_invalid_id_override_rejected(self):
        """An id override must itself be a valid id"""
        with pytest.raises(ConfigDeserializationError):
            parse_header('title = "x"\nid = "../up"\n', ArticleConfig, SOURCE)


class TestLoadAndDump:
    """Tests for load_frontmatter() and dump_frontmatter()"""

    def test_load_from_file(self, tmp_path):
        """load_frontmatter reads, splits and validates"""
        path = tmp_path / "article.md"
        path.write_text('---\ntitle = "Hi"\n---\nBody\n', encoding="utf-8")

        config, body = load_frontmatter(path, ArticleConfig)

        assert config.title == "Hi"
        assert body == "Body\n"

    def test_dump_reloads(self, tmp_path):
        """Dumped files split and validate back to the same header"""
        original = ArticleConfig(title="Loops", description="All about loops", tags=["basics"])
        path = tmp_path / "article.md"
        path.write_text(dump_frontmatter(original, "# Loops\n"), encoding="utf-8")

        config, body = load_frontmatter(path, ArticleConfig)

        assert config == original
        assert body.strip() == "# Loops"

    def test_dump_starts_with_dash_delimiter(self):
        """Dumped headers use --- delimiters"""
        text = dump_frontmatter({"title": "x"}, "body")

        assert text.startswith("---\n")
        assert 'title = "x"' in text
