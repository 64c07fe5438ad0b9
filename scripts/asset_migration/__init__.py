"""
Asset Migration Pipeline for 2D game assets

Turns a raw extraction of a legacy 2D game's assets into an engine-ready tree:
classification and import profiles, sprite sheet slicing, directional
animation clips, layered animation state machines and a validation report.
"""

__version__ = "0.1.0"
__author__ = "Asset Migration Team"

from .config import MigrationConfig
from .pipeline import MigrationPipeline, MigrationSummary, PipelineError, PipelineStep
from .processing.classifier import AssetCategory, classify
from .processing.extraction import ExtractionValidator
from .processing.report import MigrationReportBuilder

__all__ = [
    "MigrationConfig",
    "MigrationPipeline",
    "MigrationSummary",
    "PipelineError",
    "PipelineStep",
    "AssetCategory",
    "classify",
    "ExtractionValidator",
    "MigrationReportBuilder",
]
