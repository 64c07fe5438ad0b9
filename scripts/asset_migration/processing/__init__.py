"""
Asset processing modules for classification, import profiles, slicing,
animation assembly, state machine generation, validation and reporting.
"""

from .classifier import AssetCategory, ClassificationResult, classify, classify_file, output_relative_path
from .profiles import ImportProfile, AudioProfile, PlatformOverride, resolve_profile, resolve_audio_profile
from .grid import GridSpec, detect_grid, resolve_grid
from .slicer import (
    NamingConvention,
    SpriteAlignment,
    SpriteFrame,
    SpriteSheetSlicer,
    SliceResult,
    slice_sheet,
    parse_frame_name,
)
from .directions import DirectionError, map_direction, mirror_twin
from .animation import AnimationAssembler, AnimationClip, ClipSet, FrameRef, LoopPolicy, collect_frames
from .state_machine import StateMachineGenerator, StateMachineOptions, StateMachineSpec
from .extraction import ExtractionValidator, ExtractionSummary, CategoryScan
from .report import MigrationReport, MigrationReportBuilder, ReportExportError, Severity, format_file_size
from .html_report import ReportRenderer
from .manifest import MigrationManifest, CharacterEntry, load_manifest

__all__ = [
    "AssetCategory",
    "ClassificationResult",
    "classify",
    "classify_file",
    "output_relative_path",
    "ImportProfile",
    "AudioProfile",
    "PlatformOverride",
    "resolve_profile",
    "resolve_audio_profile",
    "GridSpec",
    "detect_grid",
    "resolve_grid",
    "NamingConvention",
    "SpriteAlignment",
    "SpriteFrame",
    "SpriteSheetSlicer",
    "SliceResult",
    "slice_sheet",
    "parse_frame_name",
    "DirectionError",
    "map_direction",
    "mirror_twin",
    "AnimationAssembler",
    "AnimationClip",
    "ClipSet",
    "FrameRef",
    "LoopPolicy",
    "collect_frames",
    "StateMachineGenerator",
    "StateMachineOptions",
    "StateMachineSpec",
    "ExtractionValidator",
    "ExtractionSummary",
    "CategoryScan",
    "MigrationReport",
    "MigrationReportBuilder",
    "ReportExportError",
    "Severity",
    "format_file_size",
    "ReportRenderer",
    "MigrationManifest",
    "CharacterEntry",
    "load_manifest",
]
