"""Unit tests for CLI utilities."""

import pytest

from lvpreview.build.diagnostics import CompilationResult, StructuredDiagnostic
from lvpreview.cli_utils import (
    DEFAULT_SETTINGS_FILE,
    ErrorFormatter,
    PathValidator,
    load_settings,
    print_diagnostics,
)
from lvpreview.config import PreviewSettings


class TestLoadSettings:
    """Tests for load_settings."""

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.ini"
        path.write_text("[preview]\noptimization = -O0\n")

        assert load_settings(path, tmp_path / "elsewhere").optimization == "-O0"

    def test_explicit_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Settings file not found"):
            load_settings(tmp_path / "custom.ini", tmp_path)

    def test_search_dir(self, tmp_path):
        (tmp_path / DEFAULT_SETTINGS_FILE).write_text("[preview]\ndisplay_width = 800\n")

        assert load_settings(None, tmp_path).display_width == 800

    def test_defaults(self, tmp_path):
        assert load_settings(None, tmp_path) == PreviewSettings()


class TestPrintDiagnostics:
    """Tests for print_diagnostics."""

    def test_errors_before_warnings(self, capsys):
        result = CompilationResult(
            success=False,
            errors=[StructuredDiagnostic("ui.c", 2, 1, "error", "bad")],
            warnings=[StructuredDiagnostic("ui.c", 1, 1, "warning", "meh")],
        )

        print_diagnostics(result)

        assert capsys.readouterr().out.splitlines() == [
            "  ui.c:2:1: error: bad",
            "  ui.c:1:1: warning: meh",
        ]


class TestErrorFormatter:
    """Tests for ErrorFormatter exit codes."""

    def test_file_not_found(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_file_not_found(FileNotFoundError("ui.c"))
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().out

    def test_configuration_error(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_configuration_error(ValueError("bad"))
        assert exc_info.value.code == 1

    def test_keyboard_interrupt(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130
        assert "interrupted" in capsys.readouterr().out

    def test_warning_uses_neutral_glyph(self, capsys):
        ErrorFormatter.print_warning("Build interrupted")
        out = capsys.readouterr().out
        assert "! Build interrupted" in out
        assert "\u2717" not in out

    def test_unexpected_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_unexpected_error(RuntimeError("boom"))
        assert exc_info.value.code == 1
        assert "RuntimeError: boom" in capsys.readouterr().out

    def test_unexpected_error_verbose(self, capsys):
        with pytest.raises(SystemExit):
            ErrorFormatter.handle_unexpected_error(RuntimeError("boom"), verbose=True)
        assert "Traceback" in capsys.readouterr().out


class TestPathValidator:
    """Tests for PathValidator."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "ui.c"
        path.write_text("")
        PathValidator.validate_file(path)

    def test_missing(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_file(tmp_path / "missing.c")
        assert exc_info.value.code == 2

    def test_directory(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_file(tmp_path)
        assert exc_info.value.code == 2
