"""Unit tests for the root CLI application."""

from unittest.mock import patch

from typer.testing import CliRunner

from toilet_spotter import __version__
from toilet_spotter.cli.app import app

runner = CliRunner()


class TestRootApp:
    """Tests for the root callback and serve command."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("nearby", "add", "vote", "map", "device-id", "seed", "db", "serve"):
            assert command in result.output

    def test_verbose_sets_debug_level(self, tmp_path) -> None:
        with patch("toilet_spotter.cli.app.setup_logging") as mock_setup_logging:
            runner.invoke(app, ["-v", "device-id"], env={"DEVICE_ID_PATH": str(tmp_path / "device_id")})
        assert mock_setup_logging.call_args.args[0] == "DEBUG"

    def test_serve_runs_uvicorn_factory(self) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "9000"])
        assert result.exit_code == 0, result.output
        mock_run.assert_called_once_with(
            "toilet_spotter.main:create_app", factory=True, host="127.0.0.1", port=9000, reload=False
        )
