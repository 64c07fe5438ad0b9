"""
Migration pipeline coordinator.
Runs extraction validation, bulk file processing, slicing, animation and
state machine generation, the manifest and the report in dependency order.
"""

import time
import logging
import threading
from enum import Enum
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Any, Callable, Set, Tuple
from dataclasses import dataclass, field

from .config import MigrationConfig
from .processing.classifier import (
    AssetCategory, ClassificationResult, AUDIO_EXTENSIONS, FLASH_EXTENSIONS,
    IMAGE_EXTENSIONS, OUTPUT_FOLDERS, classify_file, is_supported,
)
from .processing.profiles import resolve_audio_profile, resolve_profile
from .processing.slicer import SpriteSheetSlicer
from .processing.animation import AnimationAssembler, ClipSet, LoopPolicy, collect_frames, write_clip
from .processing.state_machine import StateMachineGenerator, StateMachineOptions, StateMachineSpec, write_controller
from .processing.extraction import ExtractionSummary, ExtractionValidator
from .processing.report import MigrationReport, MigrationReportBuilder, ReportExportError
from .processing.html_report import ReportRenderer
from .processing.manifest import CharacterEntry, MigrationManifest
from .utils.fileio import atomic_copy, atomic_write_toml, ensure_writable_directory
from .utils.image import ImageUtils


ANIMATED_CATEGORIES = (AssetCategory.CHARACTERS, AssetCategory.MONSTERS)

ProgressCallback = Callable[[str, float], None]


class PipelineStep(Enum):
    """Enumeration of pipeline steps."""
    VALIDATE_EXTRACTION = "validate_extraction"
    PROCESS_FILES = "process_files"
    SLICE_SHEETS = "slice_sheets"
    ASSEMBLE_ANIMATIONS = "assemble_animations"
    GENERATE_STATE_MACHINES = "generate_state_machines"
    MANIFEST = "manifest"
    REPORT = "report"


class FileStatus(Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: PipelineStep
    success: bool
    duration: float
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PipelineState:
    """Current state of the pipeline execution."""
    current_step: Optional[PipelineStep] = None
    completed_steps: Set[PipelineStep] = field(default_factory=set)
    failed_steps: Set[PipelineStep] = field(default_factory=set)
    step_results: Dict[PipelineStep, StepResult] = field(default_factory=dict)
    start_time: Optional[float] = None
    files_processed: int = 0
    files_failed: int = 0
    files_skipped: int = 0
    sheets_sliced: int = 0
    clips_written: int = 0


@dataclass
class FileResult:
    """Outcome of processing one source file."""
    source_path: Path
    category: Optional[AssetCategory]
    status: FileStatus
    message: str = ""
    output_path: Optional[Path] = None

    @property
    def success(self) -> bool:
        return self.status == FileStatus.PROCESSED


@dataclass
class MigrationSummary:
    """What a run produced."""
    files_processed: int
    files_failed: int
    files_skipped: int
    final_score: float
    cancelled: bool
    report: Optional[MigrationReport]
    state: PipelineState
    state_machines: Dict[Tuple[AssetCategory, str], StateMachineSpec] = field(default_factory=dict)
    file_results: List[FileResult] = field(default_factory=list)
    extraction: Optional[ExtractionSummary] = None


class PipelineError(Exception):
    """Base exception for pipeline errors."""
    def __init__(self, message: str, step: Optional[PipelineStep] = None, recoverable: bool = False):
        super().__init__(message)
        self.step = step
        self.recoverable = recoverable


class PipelineCancelledError(PipelineError):
    """Raised when a cancel request is observed between units of work."""
    pass


class MigrationPipeline:
    """
    Main pipeline coordinator for migrating an extraction root into the
    output tree.

    Manages step dependencies, execution order, state, cancellation and
    progress reporting, and logs an execution summary at the end of a run.
    """

    # Step dependencies - each step depends on the completion of its dependencies
    STEP_DEPENDENCIES = {
        PipelineStep.VALIDATE_EXTRACTION: set(),
        PipelineStep.PROCESS_FILES: {PipelineStep.VALIDATE_EXTRACTION},
        PipelineStep.SLICE_SHEETS: {PipelineStep.PROCESS_FILES},
        PipelineStep.ASSEMBLE_ANIMATIONS: {PipelineStep.SLICE_SHEETS},
        PipelineStep.GENERATE_STATE_MACHINES: {PipelineStep.ASSEMBLE_ANIMATIONS},
        PipelineStep.MANIFEST: {PipelineStep.GENERATE_STATE_MACHINES},
        PipelineStep.REPORT: {PipelineStep.GENERATE_STATE_MACHINES},
    }

    NON_CRITICAL_STEPS = {PipelineStep.MANIFEST}

    def __init__(self, config: MigrationConfig, progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize the migration pipeline.

        Args:
            config: Pipeline configuration
            progress_callback: Called with (stage, fraction) as work completes
        """
        self.config = config
        self.progress_callback = progress_callback
        self.state = PipelineState()
        self.logger = self._setup_logging()

        self.extraction_root = Path(config.extraction_root)
        self.output_root = Path(config.output_root)

        self._cancel_event = threading.Event()
        self._file_results: List[FileResult] = []
        self._clip_sets: Dict[Tuple[AssetCategory, str], ClipSet] = {}
        self._state_machines: Dict[Tuple[AssetCategory, str], StateMachineSpec] = {}
        self._extraction: Optional[ExtractionSummary] = None
        self._report: Optional[MigrationReport] = None

        self._slicer = SpriteSheetSlicer.from_config(config)
        self._assembler = AnimationAssembler(
            frame_rate=config.frame_rate,
            loop_policy=LoopPolicy(config.looping_labels),
            strict_directions=config.strict_directions,
        )
        self._generator = StateMachineGenerator(StateMachineOptions.from_config(config))

        # Step handlers
        self._step_handlers: Dict[PipelineStep, Callable] = {
            PipelineStep.VALIDATE_EXTRACTION: self._execute_validate_extraction_step,
            PipelineStep.PROCESS_FILES: self._execute_process_files_step,
            PipelineStep.SLICE_SHEETS: self._execute_slice_sheets_step,
            PipelineStep.ASSEMBLE_ANIMATIONS: self._execute_assemble_animations_step,
            PipelineStep.GENERATE_STATE_MACHINES: self._execute_state_machines_step,
            PipelineStep.MANIFEST: self._execute_manifest_step,
            PipelineStep.REPORT: self._execute_report_step,
        }

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("asset_migration")
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def request_cancel(self) -> None:
        """Ask the run to stop at the next unit boundary."""
        self.logger.warning("Cancellation requested")
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def _check_cancel(self) -> None:
        if self._cancel_event.is_set():
            raise PipelineCancelledError("Pipeline cancelled", self.state.current_step, recoverable=True)

    def _report_progress(self, stage: str, fraction: float) -> None:
        if self.progress_callback is not None:
            self.progress_callback(stage, max(0.0, min(fraction, 1.0)))

    def run(self, steps: Optional[List[PipelineStep]] = None) -> MigrationSummary:
        """
        Run the pipeline or the given steps and their dependencies.

        Args:
            steps: Optional list of specific steps to run. If None, runs all steps.

        Returns:
            Run summary; ``cancelled`` is set when a cancel request stopped the run

        Raises:
            PipelineError: If a fatal precondition fails or a critical step fails
        """
        if steps is None:
            steps = list(PipelineStep)

        self.logger.info("Starting asset migration")
        self.state.start_time = time.time()
        cancelled = False

        try:
            config_errors = self.config.validate()
            if config_errors:
                raise PipelineError(f"Invalid configuration: {'; '.join(config_errors)}")

            execution_order = self._calculate_execution_order(steps)

            for step in execution_order:
                self._check_cancel()
                self._execute_step(step)

                if step in self.state.failed_steps:
                    self.logger.warning(f"Step {step.value} failed but is not critical, continuing")

        except PipelineCancelledError:
            cancelled = True
            self.logger.warning(f"Pipeline cancelled during {self.state.current_step.value if self.state.current_step else 'startup'}")
        except PipelineError:
            self._generate_execution_summary()
            raise
        except Exception as e:
            self.logger.error(f"Pipeline execution failed: {e}")
            self.state.failed_steps.add(self.state.current_step or PipelineStep.VALIDATE_EXTRACTION)
            raise PipelineError(f"Pipeline execution failed: {e}", self.state.current_step)

        self._generate_execution_summary()
        return MigrationSummary(
            files_processed=self.state.files_processed,
            files_failed=self.state.files_failed,
            files_skipped=self.state.files_skipped,
            final_score=self._report.overall_progress if self._report else 0.0,
            cancelled=cancelled,
            report=self._report,
            state=self.state,
            state_machines=dict(self._state_machines),
            file_results=list(self._file_results),
            extraction=self._extraction,
        )

    def _calculate_execution_order(self, requested_steps: List[PipelineStep]) -> List[PipelineStep]:
        """
        Calculate the correct execution order based on step dependencies.

        Args:
            requested_steps: Steps requested to be executed

        Returns:
            Steps in correct execution order
        """
        all_required_steps = set()

        def add_dependencies(step: PipelineStep):
            if step not in all_required_steps:
                all_required_steps.add(step)
                for dep in self.STEP_DEPENDENCIES[step]:
                    add_dependencies(dep)

        for step in requested_steps:
            add_dependencies(step)

        execution_order = []
        remaining_steps = all_required_steps.copy()

        while remaining_steps:
            ready_steps = [
                step for step in remaining_steps
                if self.STEP_DEPENDENCIES[step].issubset(set(execution_order))
            ]

            if not ready_steps:
                raise PipelineError("Circular dependency detected in pipeline steps")

            # Sort ready steps for consistent execution order
            ready_steps.sort(key=lambda x: x.value)

            next_step = ready_steps[0]
            execution_order.append(next_step)
            remaining_steps.remove(next_step)

        return execution_order

    def _execute_step(self, step: PipelineStep):
        """
        Execute a single pipeline step with error handling and timing.

        Args:
            step: Step to execute
        """
        self.state.current_step = step
        self.logger.info(f"Executing step: {step.value}")
        self._report_progress(step.value, 0.0)

        start_time = time.time()

        try:
            handler = self._step_handlers[step]
            result = handler()

            duration = time.time() - start_time
            data = result if isinstance(result, dict) else {}
            step_result = StepResult(
                step=step,
                success=True,
                duration=duration,
                message=f"Step {step.value} completed successfully",
                data=data,
                warnings=list(data.pop("warnings", [])),
            )

            self.state.step_results[step] = step_result
            self.state.completed_steps.add(step)
            self._report_progress(step.value, 1.0)

            self.logger.info(f"Step {step.value} completed in {duration:.2f}s")

        except PipelineCancelledError:
            self.state.step_results[step] = StepResult(
                step=step,
                success=False,
                duration=time.time() - start_time,
                message=f"Step {step.value} cancelled",
            )
            raise

        except Exception as e:
            duration = time.time() - start_time
            step_result = StepResult(
                step=step,
                success=False,
                duration=duration,
                message=f"Step {step.value} failed: {str(e)}",
                errors=[str(e)]
            )

            self.state.step_results[step] = step_result
            self.state.failed_steps.add(step)

            self.logger.error(f"Step {step.value} failed after {duration:.2f}s: {e}")

            if step in self.NON_CRITICAL_STEPS:
                return
            if isinstance(e, PipelineError):
                e.step = e.step or step
                raise
            raise PipelineError(f"Step {step.value} failed: {e}", step) from e

    # Step implementations
    def _execute_validate_extraction_step(self) -> Dict[str, Any]:
        """Check the extraction root and prepare the output tree."""
        if not self.extraction_root.is_dir():
            raise PipelineError(f"Extraction folder not found: {self.extraction_root}",
                                PipelineStep.VALIDATE_EXTRACTION)

        try:
            ensure_writable_directory(self.output_root)
            for folder in OUTPUT_FOLDERS:
                (self.output_root / folder).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineError(f"Output folder is not writable: {self.output_root} ({e})",
                                PipelineStep.VALIDATE_EXTRACTION)

        self._extraction = ExtractionValidator.from_config(self.config).validate(self.extraction_root)
        for warning in self._extraction.warnings:
            self.logger.warning(warning)

        if self._extraction.overall_score < self.config.min_extraction_score:
            raise PipelineError(
                f"Extraction score {self._extraction.overall_score:.0%} is below the required "
                f"{self.config.min_extraction_score:.0%}",
                PipelineStep.VALIDATE_EXTRACTION,
            )

        return {
            "extraction_score": self._extraction.overall_score,
            "files_found": self._extraction.total_found,
            "warnings": list(self._extraction.warnings),
        }

    def _discover_sources(self) -> List[Path]:
        sources = []
        for path in sorted(self.extraction_root.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.extraction_root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            sources.append(path)
        return sources

    def _plan_files(self, sources: List[Path]) -> Tuple[List[ClassificationResult], List[FileResult]]:
        """Classify sources; unsupported, disabled and colliding files resolve immediately."""
        planned: List[ClassificationResult] = []
        resolved: List[FileResult] = []
        claimed: Dict[str, Path] = {}
        enabled = set(self.config.enabled_categories)

        for source in sources:
            if not is_supported(source):
                resolved.append(FileResult(source, None, FileStatus.FAILED,
                                           f"Unsupported file type: {source.suffix or source.name}"))
                continue

            classification = classify_file(self.extraction_root, source)
            routed = classification.routed_category
            if routed.value not in enabled:
                resolved.append(FileResult(source, routed, FileStatus.SKIPPED,
                                           f"Category {routed.value} disabled"))
                continue

            key = classification.output_relative_path.as_posix()
            if key in claimed:
                resolved.append(FileResult(
                    source, classification.category, FileStatus.FAILED,
                    f"Output path collision: {key} (already produced by {claimed[key].name})",
                ))
                continue
            claimed[key] = source
            planned.append(classification)

        return planned, resolved

    def _execute_process_files_step(self) -> Dict[str, Any]:
        """Classify, verify and copy every source file with a worker pool."""
        sources = self._discover_sources()
        planned, results = self._plan_files(sources)
        total = len(sources)
        done = len(results)
        self.logger.info(f"Processing {len(planned)} of {total} files with {self.config.workers} workers")

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = {executor.submit(self._process_file, item): item for item in planned}
            for future in as_completed(futures):
                results.append(future.result())
                done += 1
                self._report_progress(PipelineStep.PROCESS_FILES.value, done / total if total else 1.0)

        results.sort(key=lambda result: str(result.source_path))
        self._file_results = results

        self.state.files_processed = sum(1 for r in results if r.status == FileStatus.PROCESSED)
        self.state.files_failed = sum(1 for r in results if r.status == FileStatus.FAILED)
        self.state.files_skipped = sum(1 for r in results if r.status == FileStatus.SKIPPED)

        warnings = [f"{r.source_path}: {r.message}" for r in results if r.status == FileStatus.FAILED]
        for warning in warnings:
            self.logger.warning(warning)

        self._check_cancel()
        return {
            "files_processed": self.state.files_processed,
            "files_failed": self.state.files_failed,
            "files_skipped": self.state.files_skipped,
            "warnings": warnings,
        }

    def _process_file(self, classification: ClassificationResult) -> FileResult:
        """Copy one file into the output tree with its import sidecar."""
        source = classification.source_path
        category = classification.category
        if self.cancel_requested:
            return FileResult(source, category, FileStatus.SKIPPED, "Cancelled")

        suffix = source.suffix.lower()
        if suffix in FLASH_EXTENSIONS:
            return FileResult(source, category, FileStatus.FAILED,
                              "SWF extraction requires an external decompiler")

        output_path = self.output_root / classification.output_relative_path
        relative_source = source.relative_to(self.extraction_root).as_posix()

        try:
            if suffix in IMAGE_EXTENSIONS:
                ImageUtils.verify_image(source)
                atomic_copy(source, output_path)
                self._write_sidecar(output_path, {
                    "source": relative_source,
                    "category": category.value,
                    "profile": resolve_profile(category, self.config.optimize_textures).to_dict(),
                })
            elif suffix in AUDIO_EXTENSIONS:
                atomic_copy(source, output_path)
                self._write_sidecar(output_path, {
                    "source": relative_source,
                    "category": AssetCategory.AUDIO.value,
                    "audio": resolve_audio_profile(relative_source).to_dict(),
                })
            else:
                atomic_copy(source, output_path)
        except (ValueError, OSError) as e:
            return FileResult(source, category, FileStatus.FAILED, str(e))

        return FileResult(source, category, FileStatus.PROCESSED,
                          f"Copied to {classification.output_relative_path}", output_path)

    @staticmethod
    def _sidecar_path(output_path: Path) -> Path:
        return output_path.with_name(f"{output_path.name}.meta")

    def _write_sidecar(self, output_path: Path, data: Dict[str, Any]) -> Path:
        return atomic_write_toml(self._sidecar_path(output_path), data)

    def _execute_slice_sheets_step(self) -> Dict[str, Any]:
        """Slice character and monster sheets into frame images."""
        candidates = [
            result for result in self._file_results
            if result.success and result.category in ANIMATED_CATEGORIES
            and result.output_path is not None and result.output_path.suffix.lower() in IMAGE_EXTENSIONS
        ]
        warnings = []
        frames_written = 0

        for index, result in enumerate(candidates):
            self._check_cancel()
            try:
                if not self._slicer.is_sheet(result.output_path, result.category):
                    continue
                slice_result = self._slicer.apply(result.output_path, category=result.category)
            except (ValueError, OSError) as e:
                warnings.append(f"Failed to slice {result.output_path}: {e}")
                continue

            sidecar = self._sidecar_path(result.output_path)
            self._write_sidecar(result.output_path, {
                "source": result.source_path.relative_to(self.extraction_root).as_posix(),
                "category": result.category.value,
                "profile": resolve_profile(result.category, self.config.optimize_textures).to_dict(),
                "slicing": slice_result.to_metadata(),
            })
            self.logger.info(f"Sliced {result.output_path.name}: {len(slice_result.written)} frames, sidecar {sidecar.name}")

            warnings.extend(f"{result.output_path.name}: frame {name} out of bounds" for name in slice_result.skipped)
            frames_written += len(slice_result.written)
            self.state.sheets_sliced += 1
            self._report_progress(PipelineStep.SLICE_SHEETS.value, (index + 1) / len(candidates))

        for warning in warnings:
            self.logger.warning(warning)

        return {
            "sheets_sliced": self.state.sheets_sliced,
            "frames_written": frames_written,
            "warnings": warnings,
        }

    def _character_dirs(self) -> List[Tuple[AssetCategory, Path]]:
        dirs = []
        for category in ANIMATED_CATEGORIES:
            if category.value not in self.config.enabled_categories:
                continue
            base = self.output_root / "Sprites" / category.value
            if base.is_dir():
                dirs.extend((category, path) for path in sorted(base.iterdir()) if path.is_dir())
        return dirs

    def _execute_assemble_animations_step(self) -> Dict[str, Any]:
        """Assemble and write clips for every character folder."""
        character_dirs = self._character_dirs()
        notes = []

        for index, (category, character_dir) in enumerate(character_dirs):
            self._check_cancel()
            frames = collect_frames(character_dir, self.output_root)
            if not frames:
                continue

            name = character_dir.name
            clip_set = self._assembler.build_clips(name, frames)
            clip_dir = self.output_root / "Animations" / category.value / name
            for clip in clip_set.clips.values():
                write_clip(clip, clip_dir / f"{clip.name}.anim")
                self.state.clips_written += 1

            self._clip_sets[(category, name)] = clip_set
            notes.extend(clip_set.notes)
            self._report_progress(PipelineStep.ASSEMBLE_ANIMATIONS.value, (index + 1) / len(character_dirs))

        return {
            "characters": len(self._clip_sets),
            "clips_written": self.state.clips_written,
            "notes": notes,
        }

    def _execute_state_machines_step(self) -> Dict[str, Any]:
        """Generate and write one controller per character with clips."""
        warnings = []
        total = len(self._clip_sets)

        for index, ((category, name), clip_set) in enumerate(sorted(self._clip_sets.items(), key=lambda item: (item[0][1], item[0][0].value))):
            self._check_cancel()
            machine = self._generator.generate(clip_set)
            problems = machine.validate()
            warnings.extend(f"{name}: {problem}" for problem in problems)

            write_controller(machine, self.output_root / "Animations" / category.value / name / f"{name}.controller")
            self._state_machines[(category, name)] = machine
            self._report_progress(PipelineStep.GENERATE_STATE_MACHINES.value, (index + 1) / total)

        for warning in warnings:
            self.logger.warning(warning)

        return {
            "state_machines": len(self._state_machines),
            "warnings": warnings,
        }

    def build_manifest(self) -> MigrationManifest:
        """Index the clips and controllers produced so far."""
        manifest = MigrationManifest(
            files_processed=self.state.files_processed,
            files_failed=self.state.files_failed,
            sheets_sliced=self.state.sheets_sliced,
        )
        for (category, name), clip_set in self._clip_sets.items():
            animation_dir = f"Animations/{category.value}/{name}"
            manifest.add_character(CharacterEntry(
                name=name,
                category=category.value,
                sprite_folder=f"Sprites/{category.value}/{name}",
                frame_count=sum(clip.frame_count for clip in clip_set.clips.values()),
                clips=[f"{animation_dir}/{clip.name}.anim" for clip in clip_set.clips.values()],
                controller=f"{animation_dir}/{name}.controller" if (category, name) in self._state_machines else "",
                mirrored_clips=[clip.name for clip in clip_set.clips.values() if clip.mirror],
            ))
        return manifest

    def _execute_manifest_step(self) -> Dict[str, Any]:
        manifest = self.build_manifest()
        path = manifest.write(self.output_root)
        return {"manifest": str(path), "characters": len(manifest.characters)}

    def _execute_report_step(self) -> Dict[str, Any]:
        """Validate the output tree and export the report."""
        builder = MigrationReportBuilder.from_config(self.config)
        self._report = builder.build_report(self.output_root)
        json_path = self._report.export_json(self.output_root / self.config.report_json_name)

        warnings = []
        data: Dict[str, Any] = {
            "report_json": str(json_path),
            "overall_progress": self._report.overall_progress,
        }

        if self.config.generate_html_report:
            try:
                renderer = ReportRenderer(self.config.template_dir or None)
                html_path = renderer.export_migration_report(
                    self._report, self.output_root / self.config.report_html_name)
                data["report_html"] = str(html_path)
            except ReportExportError as e:
                warnings.append(f"HTML report not written: {e}")
                self.logger.warning(warnings[-1])

        data["warnings"] = warnings
        return data

    def _generate_execution_summary(self):
        """Generate and log execution summary."""
        total_duration = time.time() - (self.state.start_time or time.time())

        self.logger.info("=" * 60)
        self.logger.info("MIGRATION EXECUTION SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Total execution time: {total_duration:.2f}s")
        self.logger.info(f"Steps completed: {len(self.state.completed_steps)}")
        self.logger.info(f"Steps failed: {len(self.state.failed_steps)}")
        self.logger.info(f"Files processed: {self.state.files_processed}")
        self.logger.info(f"Files failed: {self.state.files_failed}")
        self.logger.info(f"Files skipped: {self.state.files_skipped}")
        if self._report is not None:
            self.logger.info(f"Final score: {self._report.overall_progress:.1%}")

        if self.state.failed_steps:
            self.logger.info("Failed steps:")
            for step in self.state.failed_steps:
                result = self.state.step_results.get(step)
                if result:
                    self.logger.info(f"  - {step.value}: {result.message}")

        self.logger.info("Step execution times:")
        for step, result in self.state.step_results.items():
            status = "✓" if result.success else "✗"
            self.logger.info(f"  {status} {step.value}: {result.duration:.2f}s")

        self.logger.info("=" * 60)
