"""Tests for the cinemagif command using click.testing.CliRunner."""

import json

import pytest
from click.testing import CliRunner

from cinemagif.cli import main
from cinemagif.config import RuntimeConfig
from cinemagif.gif_inspect import inspect_gif


@pytest.fixture
def runner():
    return CliRunner()


class TestMainCLI:
    """Tests for help, version and usage errors."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Animate circular regions of INPUT" in result.output
        assert "--frames" in result.output
        assert "--region" in result.output

    def test_short_help(self, runner):
        result = runner.invoke(main, ["-h"])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "cinemagif, version 0.1.0" in result.output

    def test_missing_positional(self, runner, jpeg_path):
        result = runner.invoke(main, [str(jpeg_path)])
        assert result.exit_code == 2
        assert "Missing argument" in result.output

    @pytest.mark.parametrize(
        "args",
        [["-f", "0"], ["-f", "31"], ["-t", "-1"], ["-t", "65536"], ["-m", "3"], ["--bogus"]],
    )
    def test_usage_errors(self, runner, tmp_path, jpeg_path, args):
        result = runner.invoke(main, [*args, str(jpeg_path), str(tmp_path / "o.gif")])
        assert result.exit_code == 2
        assert not (tmp_path / "o.gif").exists()

    def test_malformed_region(self, runner, tmp_path, jpeg_path):
        result = runner.invoke(
            main, ["-r", "1,2", str(jpeg_path), str(tmp_path / "o.gif")]
        )
        assert result.exit_code == 2
        assert "Invalid region" in result.output


@pytest.mark.integration
class TestMakeCommand:
    """End-to-end runs of the command."""

    def test_regions_on_command_line(self, runner, tmp_path, jpeg_path):
        output = tmp_path / "out.gif"
        result = runner.invoke(
            main,
            ["-f", "6", "-t", "5", "-r", "32,24,12", "-r", "10,10,6,0,4",
             "--no-progress", str(jpeg_path), str(output)],
        )

        assert result.exit_code == 0, result.output
        assert "✅" in result.output
        assert "6 frames" in result.output

        summary = inspect_gif(output)
        assert summary.frame_count == 6
        assert summary.delays == [5] * 6
        assert summary.loop_count == 0

    def test_with_progress_bars(self, runner, tmp_path, jpeg_path):
        output = tmp_path / "out.gif"
        result = runner.invoke(main, ["-f", "2", "-r", "32,24,12", str(jpeg_path), str(output)])
        assert result.exit_code == 0, result.output
        assert output.exists()

    def test_save_and_reuse_regions(self, runner, tmp_path, jpeg_path):
        regions_path = tmp_path / "regions.json"
        first = runner.invoke(
            main,
            ["-f", "3", "-m", "0", "-r", "20,20,10", "--save-regions", str(regions_path),
             "--no-progress", str(jpeg_path), str(tmp_path / "a.gif")],
        )
        assert first.exit_code == 0, first.output

        saved = json.loads(regions_path.read_text())
        assert saved["regions"][0]["dx"] == 15.0
        assert saved["regions"][0]["dy"] == 0.0

        second = runner.invoke(
            main,
            ["-f", "3", "--regions-file", str(regions_path), "--no-progress",
             str(jpeg_path), str(tmp_path / "b.gif")],
        )
        assert second.exit_code == 0, second.output
        assert (tmp_path / "a.gif").read_bytes() == (tmp_path / "b.gif").read_bytes()

    def test_grayscale_input_fails(self, runner, tmp_path, grayscale_jpeg_path):
        result = runner.invoke(
            main,
            ["-r", "5,5,3", "--no-progress", str(grayscale_jpeg_path), str(tmp_path / "o.gif")],
        )

        assert result.exit_code == 1
        assert "❌ cinemagif failed:" in result.output
        assert "mode L" in result.output
        assert not (tmp_path / "o.gif").exists()

    def test_missing_input_fails(self, runner, tmp_path):
        result = runner.invoke(
            main,
            ["-r", "5,5,3", "--no-progress", str(tmp_path / "none.jpg"), str(tmp_path / "o.gif")],
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_too_many_regions(self, runner, tmp_path, jpeg_path):
        args = []
        for i in range(11):
            args += ["-r", f"{i + 5},10,4"]
        result = runner.invoke(
            main, [*args, "--no-progress", str(jpeg_path), str(tmp_path / "o.gif")]
        )
        assert result.exit_code == 1
        assert "Too many regions" in result.output

    def test_log_dir(self, runner, tmp_path, jpeg_path):
        log_dir = tmp_path / "logs"
        result = runner.invoke(
            main,
            ["-f", "2", "-r", "20,20,8", "--log-dir", str(log_dir), "--log-level", "debug",
             "--no-progress", str(jpeg_path), str(tmp_path / "o.gif")],
        )
        assert result.exit_code == 0, result.output
        assert len(list(log_dir.glob("cinemagif_*.log"))) == 1

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_every_configurable_log_level_accepted(
        self, runner, tmp_path, jpeg_path, monkeypatch, level
    ):
        monkeypatch.setenv("CINEMAGIF_LOG_LEVEL", level)
        configured = RuntimeConfig().LOG_LEVEL

        result = runner.invoke(
            main,
            ["-f", "1", "-r", "20,20,8", "--log-level", configured, "--no-progress",
             str(jpeg_path), str(tmp_path / "o.gif")],
        )
        assert result.exit_code == 0, result.output
