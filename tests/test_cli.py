# tests/test_cli.py
"""
Tests for CLI interface
"""
import logging
import pytest
from click.testing import CliRunner
from pathlib import Path

from coursegraph import __version__
from coursegraph.cli import cli


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI installs its own root handler; put the old ones back"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCLI:
    """Tests for CLI commands"""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_cli_help(self, runner):
        """Should show help message"""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "CourseGraph" in result.output

    def test_version_command(self, runner):
        """Should show version"""
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert f"CourseGraph CLI v{__version__}" in result.output

    def test_build(self, runner, sample_course, output_root):
        """Should compile the tree and summarize it"""
        result = runner.invoke(cli, ["--input", str(sample_course), "--output", str(output_root), "build"])

        assert result.exit_code == 0, result.output
        assert "Built 2 article(s), 1 exercise(s), 2 quiz(zes), 1 course(s)" in result.output
        assert "python-101: Python 101 (3 items)" in result.output
        assert len([p for p in output_root.iterdir() if p.name.startswith("build-")]) == 1

    def test_build_prunes_old_builds(self, runner, sample_course, output_root):
        args = ["--input", str(sample_course), "--output", str(output_root), "build"]
        runner.invoke(cli, args)
        result = runner.invoke(cli, args)

        assert result.exit_code == 0
        assert len([p for p in output_root.iterdir() if p.name.startswith("build-")]) == 1

    def test_build_failure_exits_nonzero(self, runner, sample_course, output_root, write_tree):
        write_tree({"python-101/02-broken/article.md": "no header\n"})

        result = runner.invoke(cli, ["--input", str(sample_course), "--output", str(output_root), "build"])

        assert result.exit_code == 1
        assert "Build failed with 1 error(s)" in result.output

    def test_build_skip_invalid(self, runner, sample_course, output_root, write_tree):
        write_tree({"python-101/02-broken/article.md": "no header\n"})

        result = runner.invoke(
            cli, ["--input", str(sample_course), "--output", str(output_root), "build", "--skip-invalid"]
        )

        assert result.exit_code == 0, result.output
        assert "Built 2 article(s)" in result.output

    def test_check_leaves_no_output(self, runner, sample_course, output_root):
        result = runner.invoke(cli, ["--input", str(sample_course), "--output", str(output_root), "check"])

        assert result.exit_code == 0, result.output
        assert "No problems found" in result.output
        assert not output_root.exists()

    def test_check_reports_errors(self, runner, sample_course, write_tree):
        write_tree({"python-101/empty/": ""})

        result = runner.invoke(cli, ["--input", str(sample_course), "check"])

        assert result.exit_code == 1
        assert "SchemaViolation" in result.output

    def test_config_file_used(self, runner, sample_course):
        """input_dir from coursegraph.yaml is picked up from the working directory"""
        with runner.isolated_filesystem():
            Path("coursegraph.yaml").write_text(f"input_dir: {sample_course}\noutput_dir: out\n")

            result = runner.invoke(cli, ["build"])

            assert result.exit_code == 0, result.output
            assert Path("out").is_dir()

    def test_bad_config_file(self, runner):
        with runner.isolated_filesystem():
            Path("coursegraph.yaml").write_text("input_dir: [oops\n")

            result = runner.invoke(cli, ["version"])

            assert result.exit_code != 0
            assert "Failed to parse coursegraph.yaml" in result.output

    def test_init_writes_template(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["init"])

            assert result.exit_code == 0
            assert "input_dir: courses" in Path("coursegraph.yaml").read_text()

            again = runner.invoke(cli, ["init"])
            assert again.exit_code != 0
            assert "already exists" in again.output

            forced = runner.invoke(cli, ["init", "--force"])
            assert forced.exit_code == 0

    def test_watch_rejects_missing_input(self, runner, tmp_path):
        result = runner.invoke(cli, ["--input", str(tmp_path / "missing"), "watch"])

        assert result.exit_code != 0
        assert "input_dir does not exist" in result.output
