"""Integration tests for CLI commands."""

import json
from pathlib import Path

import toml
from typer.testing import CliRunner

from component_insight.analyzer import ComponentAnalyzer
from component_insight.cli import app

runner = CliRunner()


class TestComponentsCommand:
    """Tests for 'insight components'."""

    def test_lists_traced_components(self, sample_library_path: Path):
        """Test listing components without LLM calls."""
        result = runner.invoke(app, ["components", str(sample_library_path)])

        assert result.exit_code == 0
        for name in ("ButtonWrapper", "DialogModal", "SubButton", "Tag", "Card"):
            assert name in result.stdout
        assert "formatDate" not in result.stdout

    def test_nonexistent_path(self):
        """Test components on a missing directory."""
        result = runner.invoke(app, ["components", "/nonexistent/path"])

        assert result.exit_code != 0


class TestAnalyzeCommand:
    """Tests for 'insight analyze'."""

    def test_writes_report(self, sample_library_path: Path, temp_dir: Path):
        """Test writing the JSON report."""
        output = temp_dir / "report.json"

        result = runner.invoke(
            app, ["analyze", str(sample_library_path), "--batch-delay", "0", "--output", str(output)],
        )

        assert result.exit_code == 0
        report = json.loads(output.read_text())
        assert report["library"]["name"] == "sample-ui"
        assert report["library"]["displayName"] == "Sample UI"
        assert report["status"] == "completed"
        assert {c["name"] for c in report["components"]} >= {"Button", "Tag", "DialogModal"}
        assert all(c["analysis"]["name"] == c["name"] for c in report["components"])

    def test_component_ceiling_option(self, sample_library_path: Path, temp_dir: Path):
        """Test --max-components drops the overflow."""
        output = temp_dir / "report.json"

        result = runner.invoke(
            app, ["analyze", str(sample_library_path), "--max-components", "2", "-o", str(output), "--batch-delay", "0"],
        )

        assert result.exit_code == 0
        report = json.loads(output.read_text())
        assert [c["name"] for c in sorted(report["components"], key=lambda c: c["name"])] == [
            "Button", "ButtonWrapper",
        ]
        assert report["dropped"] == 7

    def test_missing_path(self):
        """Test analyze on a missing directory."""
        result = runner.invoke(app, ["analyze", "/nonexistent/path"])

        assert result.exit_code != 0

    def test_cancelled_run_exits_130(self, sample_library_path: Path, monkeypatch):
        """Test a cancelled run exits with 130."""
        original = ComponentAnalyzer.analyze

        async def cancelled_analyze(self):
            self.cancel()
            return await original(self)

        monkeypatch.setattr(ComponentAnalyzer, "analyze", cancelled_analyze)

        result = runner.invoke(app, ["analyze", str(sample_library_path)])

        assert result.exit_code == 130
        assert "Cancelled" in result.stdout


class TestLLMConfigCommands:
    """Tests for 'insight set-llm' and 'insight show-llm'."""

    def test_set_and_show(self, temp_config: Path):
        """Test saving and showing the LLM settings."""
        result = runner.invoke(app, ["set-llm", "openai", "-k", "sk-test-1234567890", "-m", "gpt-4o-mini"])

        assert result.exit_code == 0
        saved = toml.load(temp_config)
        assert saved["llm"]["provider"] == "openai"
        assert saved["llm"]["model"] == "gpt-4o-mini"
        assert saved["llm"]["api_key"] == "sk-test-1234567890"

        shown = runner.invoke(app, ["show-llm"])
        assert shown.exit_code == 0
        assert "OPENAI" in shown.stdout
        assert "gpt-4o-mini" in shown.stdout
        assert "sk-test-1234567890" not in shown.stdout

    def test_set_preserves_analysis_section(self, temp_config: Path):
        """Test set-llm keeps the analysis section."""
        temp_config.write_text('[analysis]\nmax_components = 20\n')

        result = runner.invoke(app, ["set-llm", "ollama"])

        assert result.exit_code == 0
        saved = toml.load(temp_config)
        assert saved["analysis"]["max_components"] == 20
        assert saved["llm"]["endpoint"] == "http://127.0.0.1:11434/api/generate"

    def test_unknown_provider(self, temp_config: Path):
        """Test set-llm rejects unknown providers."""
        result = runner.invoke(app, ["set-llm", "skynet"])

        assert result.exit_code == 1


def test_version():
    """Test --version output."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "Component Insight v" in result.stdout
