"""Tests for the ``hongdown`` command-line front end."""

from __future__ import annotations

import io
import json
import logging

import pytest

from hongdown.cli import EXIT_ERROR, EXIT_SUCCESS, EXIT_USAGE_ERROR, main
from hongdown.observability import logger as logger_module


def run(argv, stdin_text=""):
    stdout, stderr = io.StringIO(), io.StringIO()
    status = main(argv, stdin=io.StringIO(stdin_text), stdout=stdout, stderr=stderr)
    return status, stdout.getvalue(), stderr.getvalue()


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def restore_hongdown_logger():
    yield
    log = logging.getLogger("hongdown")
    for handler in list(log.handlers):
        log.removeHandler(handler)
    log.propagate = True
    log.setLevel(logging.NOTSET)
    logger_module._configured_loggers.discard("hongdown")


# ---------------------------------------------------------------------------
# Output modes
# ---------------------------------------------------------------------------


class TestOutputModes:
    def test_print(self, workdir):
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        status, out, err = run(["a.md"])
        assert status == EXIT_SUCCESS
        assert out == " -  a\n"
        assert err == ""

    def test_print_does_not_touch_file(self, workdir):
        path = workdir / "a.md"
        path.write_text("* a\n", encoding="utf-8")
        run(["a.md"])
        assert path.read_text(encoding="utf-8") == "* a\n"

    def test_check_unchanged(self, workdir):
        (workdir / "a.md").write_text(" -  a\n", encoding="utf-8")
        status, out, err = run(["--check", "a.md"])
        assert status == EXIT_SUCCESS
        assert out == ""
        assert err == ""

    def test_check_changed(self, workdir):
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        status, out, err = run(["--check", "a.md"])
        assert status == EXIT_ERROR
        assert out == ""
        assert "would reformat a.md" in err

    def test_write(self, workdir):
        path = workdir / "a.md"
        path.write_text("# Hi\n", encoding="utf-8")
        status, out, _ = run(["--write", "a.md"])
        assert status == EXIT_SUCCESS
        assert out == ""
        assert path.read_text(encoding="utf-8") == "Hi\n==\n"

    def test_diff(self, workdir):
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        status, out, _ = run(["--diff", "a.md"])
        assert status == EXIT_SUCCESS
        assert "a.md (original)" in out
        assert "a.md (formatted)" in out
        assert "-* a" in out
        assert "+ -  a" in out

    def test_check_with_diff(self, workdir):
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        status, out, _ = run(["--check", "--diff", "a.md"])
        assert status == EXIT_ERROR
        assert "(formatted)" in out

    def test_stdin(self):
        status, out, _ = run(["--stdin"], stdin_text="# Hi\n")
        assert status == EXIT_SUCCESS
        assert out == "Hi\n==\n"

    def test_stdin_with_files_rejected(self, workdir):
        (workdir / "a.md").write_text("x\n", encoding="utf-8")
        status, _, err = run(["--stdin", "a.md"])
        assert status == EXIT_USAGE_ERROR
        assert "--stdin" in err


# ---------------------------------------------------------------------------
# Errors and warnings
# ---------------------------------------------------------------------------


class TestDiagnostics:
    def test_missing_file(self):
        status, _, err = run(["missing.md"])
        assert status == EXIT_ERROR
        assert "missing.md: error: cannot read file" in err

    def test_missing_file_does_not_stop_others(self, workdir):
        (workdir / "b.md").write_text("* b\n", encoding="utf-8")
        status, out, _ = run(["missing.md", "b.md"])
        assert status == EXIT_ERROR
        assert out == " -  b\n"

    def test_warning_printed(self, workdir):
        (workdir / "x.md").write_text("See [nope].\n", encoding="utf-8")
        status, _, err = run(["x.md"])
        assert status == EXIT_SUCCESS
        assert "x.md:1: warning: undefined reference link [nope]" in err

    def test_no_input_files(self):
        status, _, err = run([])
        assert status == EXIT_USAGE_ERROR
        assert "no input files" in err

    def test_bad_config(self, workdir):
        (workdir / "bad.toml").write_text("line_width = 'wide'\n", encoding="utf-8")
        status, _, err = run(["--config", "bad.toml", "--stdin"])
        assert status == EXIT_USAGE_ERROR
        assert err.startswith("error:")

    def test_unreadable_config(self):
        status, _, err = run(["--config", "nowhere.toml", "--stdin"])
        assert status == EXIT_USAGE_ERROR
        assert "error:" in err

    @pytest.mark.parametrize("value", ["0", "-3", "wide"])
    def test_invalid_line_width(self, value):
        with pytest.raises(SystemExit) as exc_info:
            run(["--line-width", value, "--stdin"])
        assert exc_info.value.code == EXIT_USAGE_ERROR


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    def test_line_width_override(self):
        text = "alpha beta gamma delta epsilon\n"
        status, out, _ = run(["--line-width", "20", "--stdin"], stdin_text=text)
        assert status == EXIT_SUCCESS
        assert out == "alpha beta gamma\ndelta epsilon\n"

    def test_discovered_config_applies(self, workdir):
        (workdir / ".hongdown.toml").write_text("line_width = 20\n", encoding="utf-8")
        text = "alpha beta gamma delta epsilon\n"
        _, out, _ = run(["--stdin"], stdin_text=text)
        assert out == "alpha beta gamma\ndelta epsilon\n"

    def test_include_globs_used_without_arguments(self, workdir):
        (workdir / ".hongdown.toml").write_text(
            'include = ["*.md"]\nexclude = ["skip.md"]\n', encoding="utf-8"
        )
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        (workdir / "b.md").write_text("* b\n", encoding="utf-8")
        (workdir / "skip.md").write_text("* s\n", encoding="utf-8")
        status, _, err = run(["--check"])
        assert status == EXIT_ERROR
        assert "a.md" in err
        assert "b.md" in err
        assert "skip.md" not in err

    def test_explicit_config(self, workdir):
        (workdir / "custom.toml").write_text(
            '[unordered_list]\nunordered_marker = "*"\n', encoding="utf-8"
        )
        _, out, _ = run(["--config", "custom.toml", "--stdin"], stdin_text="- a\n")
        assert out == " *  a\n"


# ---------------------------------------------------------------------------
# Concurrency and logging
# ---------------------------------------------------------------------------


class TestJobs:
    def test_output_order_preserved(self, workdir):
        names = [f"f{index}.md" for index in range(6)]
        for index, name in enumerate(names):
            (workdir / name).write_text(f"# Doc {index}\n", encoding="utf-8")
        status, out, _ = run(["--jobs", "2", *names])
        assert status == EXIT_SUCCESS
        expected = "".join(f"Doc {index}\n=====\n" for index in range(6))
        assert out == expected


class TestVerbose:
    def test_structured_debug_output(self, workdir, restore_hongdown_logger):
        (workdir / "a.md").write_text("* a\n", encoding="utf-8")
        status, out, err = run(["--verbose", "a.md"])
        assert status == EXIT_SUCCESS
        assert out == " -  a\n"
        entries = [json.loads(line) for line in err.splitlines() if line.strip()]
        messages = [entry["message"] for entry in entries]
        assert "document formatted" in messages
        assert "run finished" in messages
        finished = next(entry for entry in entries if entry["message"] == "run finished")
        assert finished["files"] == 1
        assert finished["changed"] == 1
