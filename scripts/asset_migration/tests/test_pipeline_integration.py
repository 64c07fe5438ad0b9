"""
Integration tests for the migration pipeline.
Tests end-to-end runs, per-file failures, cancellation and step ordering.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import toml
from PIL import Image

from ..config import MigrationConfig
from ..pipeline import FileStatus, MigrationPipeline, PipelineError, PipelineStep
from ..processing.classifier import AssetCategory
from ..processing.directions import ROW_DIRECTIONS
from ..processing.manifest import MANIFEST_PATH, ManifestError, MigrationManifest
from ..processing.state_machine import BlendSpace


class TestPipelineIntegration:
    """Integration tests for the complete migration pipeline."""

    def setup_method(self):
        """Set up test environment for each test."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.raw = self.temp_dir / "Raw"
        self.out = self.temp_dir / "ImportedAssets"
        self.config = MigrationConfig(
            extraction_root=str(self.raw),
            output_root=str(self.out),
            essential_characters=["Feca"],
            workers=2,
        )
        self.raw.mkdir()

    def teardown_method(self):
        """Clean up test environment after each test."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _image(self, relative, size=(64, 64)):
        path = self.raw / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", size, (200, 120, 40, 255)).save(path)
        return path

    def _create_character(self, name="Feca", labels=("idle", "walk"), frames=8):
        for label in labels:
            for direction in ROW_DIRECTIONS:
                for index in range(frames):
                    self._image(f"Characters/{name}/{label}_{direction}_{index:02d}.png")

    def test_full_pipeline_execution(self):
        """A complete character migrates into clips, a controller, a manifest and a report."""
        self._create_character()
        stages = []

        pipeline = MigrationPipeline(self.config, progress_callback=lambda stage, fraction: stages.append(stage))
        summary = pipeline.run()

        assert not summary.cancelled
        assert summary.files_processed == 128
        assert summary.files_failed == 0
        assert summary.state.completed_steps == set(PipelineStep)
        assert summary.state.failed_steps == set()

        sprite = self.out / "Sprites/Characters/Feca/idle_S_00.png"
        assert sprite.exists()
        sidecar = toml.load(str(sprite.with_name("idle_S_00.png.meta")))
        assert sidecar["source"] == "Characters/Feca/idle_S_00.png"
        assert sidecar["category"] == "Characters"

        clip_dir = self.out / "Animations/Characters/Feca"
        assert len(list(clip_dir.glob("*.anim"))) == 16
        assert (clip_dir / "Feca_walk_NE.anim").exists()
        controller = json.loads((clip_dir / "Feca.controller").read_text())
        assert controller["name"] == "Feca"

        assert list(summary.state_machines) == [(AssetCategory.CHARACTERS, "Feca")]
        base = summary.state_machines[(AssetCategory.CHARACTERS, "Feca")].layer("Base Layer")
        for state_name in ("Idle", "Move"):
            motion = base.state(state_name).motion
            assert isinstance(motion, BlendSpace)
            assert len(motion.children) == 8

        manifest = toml.load(str(self.out / MANIFEST_PATH))
        assert manifest["characters"]["Feca"]["controller"] == "Animations/Characters/Feca/Feca.controller"
        assert len(manifest["characters"]["Feca"]["clips"]) == 16

        report = summary.report
        assert report.category("Characters").progress > 0
        assert report.critical_count == 0
        assert summary.final_score == report.overall_progress
        assert (self.out / "migration_report.json").exists()
        assert (self.out / "migration_report.html").exists()

        assert stages[0] == "validate_extraction"
        assert "report" in stages

    def test_rerun_gives_same_report(self):
        """Running twice on the same input yields the same report apart from the timestamp."""
        self._create_character(labels=("idle",), frames=2)

        first = MigrationPipeline(self.config).run().report.to_dict()
        second = MigrationPipeline(self.config).run().report.to_dict()

        first.pop("generation_timestamp")
        second.pop("generation_timestamp")
        assert first == second

    def test_sheet_is_sliced_and_animated(self):
        """A character sheet is sliced next to its copy and feeds clip assembly."""
        self._image("Characters/Iop/walk.png", size=(512, 512))
        self.config.essential_characters = []

        summary = MigrationPipeline(self.config).run()

        frame_dir = self.out / "Sprites/Characters/Iop/walk"
        assert summary.state.sheets_sliced == 1
        assert len(list(frame_dir.glob("*.png"))) == 64
        assert (frame_dir / "walk_S_00.png").exists()

        sidecar = toml.load(str(self.out / "Sprites/Characters/Iop/walk.png.meta"))
        assert sidecar["slicing"]["grid"]["rows"] == 8

        assert len(list((self.out / "Animations/Characters/Iop").glob("*.anim"))) == 8

    def test_per_file_failures_do_not_stop_the_run(self):
        """Unsupported, SWF, corrupt and colliding files fail individually."""
        self._create_character(labels=("idle",), frames=1)
        (self.raw / "readme.txt").write_text("notes")
        (self.raw / "movie.swf").write_bytes(b"FWS")
        (self.raw / "Characters/Feca/broken.png").write_bytes(b"not an image")
        self._image("Characters/shared.png")
        self._image("characters/shared.png")
        (self.raw / ".hidden").mkdir()
        (self.raw / ".hidden/secret.png").write_bytes(b"")

        summary = MigrationPipeline(self.config).run()
        results = {result.source_path.relative_to(self.raw).as_posix(): result for result in summary.file_results}

        assert results["readme.txt"].status == FileStatus.FAILED
        assert results["readme.txt"].message.startswith("Unsupported file type")
        assert results["movie.swf"].status == FileStatus.FAILED
        assert results["Characters/Feca/broken.png"].status == FileStatus.FAILED
        assert results["Characters/shared.png"].status == FileStatus.PROCESSED
        assert results["characters/shared.png"].status == FileStatus.FAILED
        assert "Output path collision" in results["characters/shared.png"].message
        assert ".hidden/secret.png" not in results

        assert summary.files_failed == 4
        assert summary.files_processed == 9
        assert PipelineStep.REPORT in summary.state.completed_steps
        warnings = summary.state.step_results[PipelineStep.PROCESS_FILES].warnings
        assert len(warnings) == 4

    def test_disabled_category_is_skipped(self):
        self._create_character(labels=("idle",), frames=1)
        audio = self.raw / "Audio/Music/theme.ogg"
        audio.parent.mkdir(parents=True)
        audio.write_bytes(b"OggS")
        self.config.enabled_categories = ["Characters"]

        summary = MigrationPipeline(self.config).run()

        assert summary.files_skipped == 1
        assert not (self.out / "Audio/Music/theme.ogg").exists()

    def test_enable_flags_follow_routed_category(self):
        """Audio and data files obey the Audio and Data flags whatever keyword they match."""
        self._create_character(labels=("idle",), frames=1)
        spell = self.raw / "Audio/SFX/spell_cast.wav"
        spell.parent.mkdir(parents=True)
        spell.write_bytes(b"RIFF")
        class_list = self.raw / "Data/class_list.json"
        class_list.parent.mkdir(parents=True)
        class_list.write_text("{}")
        self.config.enabled_categories = ["Characters", "Effects", "Data"]

        summary = MigrationPipeline(self.config).run()

        skipped = [r for r in summary.file_results if r.status == FileStatus.SKIPPED]
        assert [r.source_path.name for r in skipped] == ["spell_cast.wav"]
        assert not (self.out / "Audio/SFX/spell_cast.wav").exists()
        assert (self.out / "Data/class_list.json").exists()

        shutil.rmtree(self.out)
        self.config.enabled_categories = ["Characters", "Audio"]
        summary = MigrationPipeline(self.config).run()

        assert (self.out / "Audio/SFX/spell_cast.wav").exists()
        assert not (self.out / "Data/class_list.json").exists()
        assert summary.files_skipped == 1

    def test_same_folder_name_in_characters_and_monsters(self):
        """A character and a monster sharing a folder name each keep their controller."""
        for category in ("Characters", "Monsters"):
            for direction in ROW_DIRECTIONS:
                self._image(f"{category}/Larva/idle_{direction}_00.png")
        self.config.essential_characters = []

        summary = MigrationPipeline(self.config).run()

        assert set(summary.state_machines) == {
            (AssetCategory.CHARACTERS, "Larva"),
            (AssetCategory.MONSTERS, "Larva"),
        }
        manifest = toml.load(str(self.out / MANIFEST_PATH))
        assert manifest["characters"]["Larva"]["controller"] == "Animations/Characters/Larva/Larva.controller"
        assert manifest["monsters"]["Larva"]["controller"] == "Animations/Monsters/Larva/Larva.controller"
        assert (self.out / "Animations/Monsters/Larva/Larva.controller").exists()

    def test_missing_extraction_root(self):
        self.config.extraction_root = str(self.temp_dir / "absent")

        with pytest.raises(PipelineError) as exc_info:
            MigrationPipeline(self.config).run()

        assert exc_info.value.step == PipelineStep.VALIDATE_EXTRACTION
        assert "Extraction folder not found" in str(exc_info.value)

    def test_extraction_score_gate(self):
        self._image("Characters/Feca/idle_S_00.png")
        self.config.min_extraction_score = 0.9

        with pytest.raises(PipelineError) as exc_info:
            MigrationPipeline(self.config).run()

        assert "below the required" in str(exc_info.value)
        assert not (self.out / "Sprites/Characters/Feca").exists()

    def test_invalid_configuration(self):
        self.config.workers = 0

        with pytest.raises(PipelineError) as exc_info:
            MigrationPipeline(self.config).run()

        assert "workers must be positive" in str(exc_info.value)

    def test_cancellation(self):
        """A cancel request stops the run at the next unit boundary."""
        self._create_character(labels=("idle",), frames=2)

        def cancel_on_slice(stage, fraction):
            if stage == PipelineStep.SLICE_SHEETS.value:
                pipeline.request_cancel()

        pipeline = MigrationPipeline(self.config, progress_callback=cancel_on_slice)
        summary = pipeline.run()

        assert summary.cancelled
        assert summary.report is None
        assert PipelineStep.PROCESS_FILES in summary.state.completed_steps
        assert PipelineStep.REPORT not in summary.state.completed_steps
        assert not (self.out / "Animations/Characters/Feca").exists()
        assert (self.out / "Sprites/Characters/Feca/idle_S_00.png").exists()

    def test_manifest_failure_is_not_critical(self):
        self._create_character(labels=("idle",), frames=1)

        with patch.object(MigrationManifest, "write", side_effect=ManifestError("disk full")):
            summary = MigrationPipeline(self.config).run()

        assert PipelineStep.MANIFEST in summary.state.failed_steps
        assert PipelineStep.REPORT in summary.state.completed_steps
        assert summary.report is not None

    def test_specific_steps(self):
        self._create_character(labels=("idle",), frames=1)

        summary = MigrationPipeline(self.config).run([PipelineStep.PROCESS_FILES])

        assert summary.state.completed_steps == {PipelineStep.VALIDATE_EXTRACTION, PipelineStep.PROCESS_FILES}
        assert summary.report is None
        assert summary.final_score == 0.0

    def test_execution_order(self):
        pipeline = MigrationPipeline(self.config)

        order = pipeline._calculate_execution_order([PipelineStep.REPORT, PipelineStep.MANIFEST])

        assert order == [
            PipelineStep.VALIDATE_EXTRACTION,
            PipelineStep.PROCESS_FILES,
            PipelineStep.SLICE_SHEETS,
            PipelineStep.ASSEMBLE_ANIMATIONS,
            PipelineStep.GENERATE_STATE_MACHINES,
            PipelineStep.MANIFEST,
            PipelineStep.REPORT,
        ]
        assert pipeline._calculate_execution_order([PipelineStep.SLICE_SHEETS]) == [
            PipelineStep.VALIDATE_EXTRACTION,
            PipelineStep.PROCESS_FILES,
            PipelineStep.SLICE_SHEETS,
        ]
