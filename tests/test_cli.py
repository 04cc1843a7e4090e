"""Tests for the typedbundle CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from typedbundle.cli import app

runner = CliRunner()


@pytest.fixture
def declaration(tmp_path: Path, catalog_dir: Path) -> Path:
    path = tmp_path / "typedbundle.yaml"
    path.write_text(
        "bundles:\n"
        "  - bundle: messages\n"
        "    source_dir: i18n\n"
        "    output: app/messages.py\n",
        encoding="utf-8",
    )
    return path


def _direct_args(catalog_dir: Path, output: Path) -> list[str]:
    return ["--bundle", "messages", "--source-dir", str(catalog_dir), "--output", str(output)]


class TestGenerateCommand:
    """typedbundle generate."""

    def test_direct_options(self, tmp_path: Path, catalog_dir: Path):
        """Test generating from command-line options."""
        output = tmp_path / "out" / "messages.py"
        result = runner.invoke(app, ["generate", *_direct_args(catalog_dir, output)])
        assert result.exit_code == 0, result.output
        assert "generated (3 methods)" in result.output
        assert output.is_file()

    def test_second_run_unchanged(self, tmp_path: Path, catalog_dir: Path):
        """Test a repeated run reports the module as unchanged."""
        output = tmp_path / "messages.py"
        runner.invoke(app, ["generate", *_direct_args(catalog_dir, output)])
        result = runner.invoke(app, ["generate", *_direct_args(catalog_dir, output)])
        assert result.exit_code == 0
        assert "unchanged" in result.output

    def test_declaration_file(self, tmp_path: Path, declaration: Path):
        """Test generating from a declaration file."""
        result = runner.invoke(app, ["generate", "--config", str(declaration)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "app" / "messages.py").is_file()

    def test_partial_options(self, tmp_path: Path, catalog_dir: Path):
        """Test --bundle without --output is a usage error."""
        result = runner.invoke(app, ["generate", "--bundle", "messages"])
        assert result.exit_code == 2
        assert "must be given together" in result.output

    def test_no_declaration(self, tmp_path: Path, monkeypatch):
        """Test running without any declaration."""
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["generate"])
        assert result.exit_code == 2
        assert "no declaration found" in result.output

    def test_discovers_declaration(self, tmp_path: Path, declaration: Path, monkeypatch):
        """Test the declaration in the working directory is used."""
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["generate"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "app" / "messages.py").is_file()

    def test_validation_errors_listed(self, tmp_path: Path, catalog_dir: Path):
        """Test every validation error is printed and the exit code is set."""
        (catalog_dir / "messages_de.properties").write_text(
            "welcome.message = Hallo {0} {1} {2}\ngoodbye.message = Tschuss {name}\n",
            encoding="utf-8",
        )
        output = tmp_path / "messages.py"
        result = runner.invoke(app, ["generate", *_direct_args(catalog_dir, output)])
        assert result.exit_code == 32
        assert "failed validation" in result.output
        assert "welcome.message" in result.output
        assert "goodbye.message" in result.output
        assert not output.exists()

    def test_missing_bundle(self, tmp_path: Path, catalog_dir: Path):
        """Test a missing default catalog exits with its error code."""
        result = runner.invoke(
            app,
            ["generate", "-b", "absent", "-s", str(catalog_dir), "-o", str(tmp_path / "a.py")],
        )
        assert result.exit_code == 10
        assert "Catalog not found" in result.output

    def test_invalid_mode(self, tmp_path: Path, catalog_dir: Path):
        """Test option values are validated."""
        output = tmp_path / "messages.py"
        result = runner.invoke(
            app, ["generate", *_direct_args(catalog_dir, output), "--mode", "icu"]
        )
        assert result.exit_code == 40
        assert "Invalid mode" in result.output


class TestCheckCommand:
    """typedbundle check."""

    def test_stale_then_ok(self, tmp_path: Path, declaration: Path):
        """Test check fails before generation and passes after."""
        args = ["--config", str(declaration)]
        result = runner.invoke(app, ["check", *args])
        assert result.exit_code == 1
        assert "stale" in result.output
        assert not (tmp_path / "app" / "messages.py").exists()

        runner.invoke(app, ["generate", *args])
        result = runner.invoke(app, ["check", *args])
        assert result.exit_code == 0, result.output
        assert "ok" in result.output


class TestInspectCommand:
    """typedbundle inspect."""

    def test_text(self, tmp_path: Path, catalog_dir: Path):
        """Test the human-readable listing."""
        result = runner.invoke(
            app, ["inspect", *_direct_args(catalog_dir, tmp_path / "messages.py")]
        )
        assert result.exit_code == 0, result.output
        assert "Messages (bundle 'messages', positional, locales: fr, fr_CA)" in result.output
        assert "welcomeMessage(locale, arg0, arg1)  <- welcome.message" in result.output
        assert "appTitle(locale)  <- app.title" in result.output

    def test_json(self, tmp_path: Path, catalog_dir: Path):
        """Test the JSON listing."""
        result = runner.invoke(
            app,
            [
                "inspect",
                *_direct_args(catalog_dir, tmp_path / "messages.py"),
                "--naming",
                "snake",
                "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        [bundle] = json.loads(result.output)
        assert bundle["mode"] == "positional"
        assert bundle["locales"] == ["fr", "fr_CA"]
        assert bundle["methods"][0] == {
            "key": "welcome.message",
            "method": "welcome_message",
            "mode": "positional",
            "parameters": ["arg0", "arg1"],
        }


class TestGlobalOptions:
    """Options shared by every command."""

    def test_help(self):
        """Test the help lists the commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "check", "inspect"):
            assert command in result.output

    def test_verbose(self, tmp_path: Path, catalog_dir: Path):
        """Test -v is accepted before the command."""
        output = tmp_path / "messages.py"
        result = runner.invoke(app, ["-v", "generate", *_direct_args(catalog_dir, output)])
        assert result.exit_code == 0, result.output
