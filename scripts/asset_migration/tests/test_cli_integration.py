"""
Integration tests for the asset migration CLI.
Tests command-line interface functionality and argument parsing.
"""

import os
import json
import shutil
import tempfile
from pathlib import Path

from PIL import Image
from typer.testing import CliRunner

from ..cli import app
from ..processing.directions import ROW_DIRECTIONS


class TestCLIIntegration:
    """Test CLI integration and command functionality."""

    def setup_method(self):
        """Set up test environment before each test."""
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.original_cwd = os.getcwd()
        os.chdir(self.temp_dir)

        for direction in ROW_DIRECTIONS:
            for label in ("idle", "walk"):
                for index in range(2):
                    self._image(Path("Raw/Characters/Feca") / f"{label}_{direction}_{index:02d}.png")

    def teardown_method(self):
        """Clean up test environment after each test."""
        os.chdir(self.original_cwd)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @staticmethod
    def _image(path: Path, size=(64, 64)):
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", size, (10, 200, 10, 255)).save(path)

    def create_test_config(self, text: str = None) -> Path:
        """Create a test configuration file."""
        if text is None:
            text = (
                '[paths]\n'
                'extraction_root = "Raw"\n'
                'output_root = "Out"\n'
                '\n'
                '[validation]\n'
                'essential_characters = ["Feca"]\n'
            )
        config_path = Path("asset_migration.toml")
        config_path.write_text(text)
        return config_path

    def test_cli_help(self):
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Asset migration pipeline" in result.stdout

    def test_run_command_help(self):
        result = self.runner.invoke(app, ["run", "--help"])
        assert result.exit_code == 0
        assert "Run the complete migration pipeline" in result.stdout

    def test_config_show(self):
        self.create_test_config()
        result = self.runner.invoke(app, ["config", "--show"])
        assert result.exit_code == 0
        assert "Asset Migration Configuration" in result.stdout
        assert "Using configuration: asset_migration.toml" in result.stdout

    def test_config_validate(self):
        self.create_test_config()
        result = self.runner.invoke(app, ["config", "--validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.stdout

    def test_config_validate_errors(self):
        config_path = self.create_test_config('[animation]\nframe_rate = 0\n')
        result = self.runner.invoke(app, ["config", "--validate", "--config", str(config_path)])
        assert result.exit_code == 1
        assert "frame_rate must be positive" in result.stdout

    def test_config_missing_file(self):
        result = self.runner.invoke(app, ["config", "--show", "--config", "absent.toml"])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.stdout

    def test_config_default_uses_environment(self):
        result = self.runner.invoke(app, ["config", "--show"],
                                    env={"ASSET_MIGRATION_OUTPUT_ROOT": "EnvTree"})
        assert result.exit_code == 0
        assert "Using default configuration" in result.stdout
        assert "EnvTree" in result.stdout

    def test_config_env_vars(self):
        result = self.runner.invoke(app, ["config", "--env-vars"])
        assert result.exit_code == 0
        assert "ASSET_MIGRATION_WORKERS" in result.stdout

    def test_validate_command(self):
        result = self.runner.invoke(app, ["validate", "Raw", "--threshold", "0.9"])
        assert result.exit_code == 1
        assert "not ready for processing" in result.stdout

        result = self.runner.invoke(app, ["validate", "Raw", "--threshold", "0", "--html", "extraction.html"])
        assert result.exit_code == 0
        assert "Ready for processing" in result.stdout
        assert "Characters" in Path("extraction.html").read_text()

    def test_run_command(self):
        self.create_test_config()
        result = self.runner.invoke(app, ["run", "--workers", "2"])
        assert result.exit_code == 0
        assert "Migration completed successfully" in result.stdout
        assert "Migration Summary" in result.stdout
        assert Path("Out/Animations/Characters/Feca/Feca.controller").exists()
        assert json.loads(Path("Out/migration_report.json").read_text())["statistics"]["total_assets"] > 0

    def test_run_missing_root(self):
        result = self.runner.invoke(app, ["run", "-i", "Nowhere", "-o", "Out", "--no-summary"])
        assert result.exit_code == 1
        assert "Pipeline error" in result.stdout

    def test_run_invalid_step(self):
        result = self.runner.invoke(app, ["run", "--steps", "validate_extraction,polish"])
        assert result.exit_code == 1
        assert "Invalid step name: polish" in result.stdout

    def test_slice_dry_run(self):
        self._image(Path("sheet.png"), size=(256, 128))
        result = self.runner.invoke(app, ["slice", "sheet.png", "--dry-run"])
        assert result.exit_code == 0
        assert "8 frames" in result.stdout
        assert not Path("sheet").exists()

    def test_slice_writes_frames(self):
        self._image(Path("walk.png"), size=(128, 128))
        result = self.runner.invoke(app, ["slice", "walk.png", "-o", "frames", "--rows", "2", "--columns", "2"])
        assert result.exit_code == 0
        assert sorted(p.name for p in Path("frames").iterdir()) == [
            "walk_SW_00.png", "walk_SW_01.png", "walk_S_00.png", "walk_S_01.png"]

    def test_slice_missing_sheet(self):
        result = self.runner.invoke(app, ["slice", "absent.png"])
        assert result.exit_code == 1
        assert "Sheet not found" in result.stdout

    def test_animate_command(self):
        result = self.runner.invoke(app, ["animate", "Raw/Characters/Feca", "--no-write"])
        assert result.exit_code == 0
        assert "Base Layer" in result.stdout
        assert not list(Path("Raw/Characters/Feca").glob("*.anim"))

        result = self.runner.invoke(app, ["animate", "Raw/Characters/Feca"])
        assert result.exit_code == 0
        assert len(list(Path("Raw/Characters/Feca").glob("*.anim"))) == 16
        assert Path("Raw/Characters/Feca/Feca.controller").exists()

    def test_report_command(self):
        self.create_test_config()
        assert self.runner.invoke(app, ["run", "--no-summary"]).exit_code == 0

        result = self.runner.invoke(app, ["report", "Out", "--json", "report.json", "--html", "report.html"])
        assert result.exit_code == 0
        assert "Migration Progress" in result.stdout
        assert Path("report.json").exists()
        assert "Asset Migration Report" in Path("report.html").read_text()

        result = self.runner.invoke(app, ["report", "Out", "--timestamped"])
        assert result.exit_code == 0
        assert list(Path("Out").glob("AssetReport_*.json"))

    def test_report_missing_output(self):
        result = self.runner.invoke(app, ["report", "Nowhere"])
        assert result.exit_code == 1
        assert "Output folder not found" in result.stdout

    def test_version(self):
        result = self.runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Asset Migration Pipeline" in result.stdout
        assert "Pillow" in result.stdout
