"""
Configuration management for the asset migration pipeline.
Supports TOML and JSON configuration files, environment overrides and validation.
"""

import os
import json
from dataclasses import dataclass, field, asdict

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib
from typing import Dict, List, Any, Union
from pathlib import Path


CATEGORY_NAMES = ["Characters", "Maps", "UI", "Effects", "Audio", "Monsters", "Data"]

NAMING_CONVENTIONS = ["direction_first", "frame_first", "type_direction_frame", "index_only"]

ALIGNMENTS = [
    "center", "top_left", "top_center", "top_right", "left_center",
    "right_center", "bottom_left", "bottom_center", "bottom_right", "custom",
]

ESSENTIAL_CHARACTERS = ["Feca", "Osamodas", "Enutrof", "Sram", "Xelor"]

CHARACTER_CLASSES = [
    "Feca", "Osamodas", "Enutrof", "Sram", "Xelor", "Ecaflip",
    "Eniripsa", "Iop", "Cra", "Sadida", "Sacrier", "Pandawa",
    "Roublard", "Zobal", "Steamer", "Eliotrope", "Huppermage", "Ouginak",
]

# 18 classes x 2 genders x 8 directions x 8 frames
DEFAULT_EXPECTED_COUNTS = {
    "Characters": len(CHARACTER_CLASSES) * 2 * 8 * 8,
    "Maps": 500,
    "UI": 200,
    "Effects": 100,
    "Audio": 50,
    "Monsters": 200,
}


def default_extraction_expectations() -> Dict[str, Dict[str, Any]]:
    return {
        "Characters": {"minimum": 32, "subfolders": [], "optional": False},
        "UI": {"minimum": 10, "subfolders": ["Buttons", "Windows", "Icons"], "optional": False},
        "Maps": {"minimum": 10, "subfolders": ["Tiles"], "optional": False},
        "Audio": {"minimum": 5, "subfolders": ["Music", "SFX", "Ambient"], "optional": True},
    }


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class MigrationConfig:
    """Main configuration class for the asset migration pipeline."""

    # Paths
    extraction_root: str = "ExtractedAssets/Raw"
    output_root: str = "ImportedAssets"

    # Categories
    enabled_categories: List[str] = field(default_factory=lambda: list(CATEGORY_NAMES))

    # Slicing
    grid_auto_detect: bool = True
    grid_rows: int = 8
    grid_columns: int = 8
    cell_width: int = 64
    cell_height: int = 64
    naming_convention: str = "direction_first"
    alignment: str = "center"
    custom_pivot: tuple[float, float] = (0.5, 0.5)

    # Animation
    frame_rate: float = 12.0
    looping_labels: List[str] = field(default_factory=lambda: ["idle", "walk", "run"])
    create_idle: bool = True
    create_movement: bool = True
    create_combat: bool = True
    create_emote: bool = False
    use_8_directions: bool = True
    use_blend_spaces: bool = True
    strict_directions: bool = False

    # Processing
    workers: int = 4
    min_extraction_score: float = 0.0
    optimize_textures: bool = False

    # Validation
    max_texture_size: int = 4096
    min_frame_rate: float = 12.0
    max_audio_duration: float = 60.0
    essential_characters: List[str] = field(default_factory=lambda: list(ESSENTIAL_CHARACTERS))
    extraction_expectations: Dict[str, Dict[str, Any]] = field(default_factory=default_extraction_expectations)

    # Report
    expected_counts: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_EXPECTED_COUNTS))
    report_json_name: str = "migration_report.json"
    report_html_name: str = "migration_report.html"
    generate_html_report: bool = True
    template_dir: str = ""

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "MigrationConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            with open(config_path, 'rb') as f:
                data = tomllib.load(f)
        elif config_path.suffix.lower() == '.json':
            with open(config_path, 'r') as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create configuration from a sectioned dictionary."""
        config_data: Dict[str, Any] = {}

        if 'paths' in data:
            paths = data['paths']
            for key in ('extraction_root', 'output_root', 'template_dir'):
                if key in paths:
                    config_data[key] = str(paths[key])

        if 'categories' in data:
            categories = data['categories']
            if 'enabled' in categories:
                config_data['enabled_categories'] = list(categories['enabled'])
            else:
                # Per-category flags: { Characters = true, Audio = false }
                enabled = [name for name in CATEGORY_NAMES if categories.get(name, True)]
                config_data['enabled_categories'] = enabled

        if 'slicing' in data:
            slicing = data['slicing']
            for key in ('grid_auto_detect', 'grid_rows', 'grid_columns', 'cell_width',
                        'cell_height', 'naming_convention', 'alignment'):
                if key in slicing:
                    config_data[key] = slicing[key]
            if 'custom_pivot' in slicing:
                config_data['custom_pivot'] = tuple(slicing['custom_pivot'])

        if 'animation' in data:
            animation = data['animation']
            for key in ('frame_rate', 'looping_labels', 'create_idle', 'create_movement',
                        'create_combat', 'create_emote', 'use_8_directions',
                        'use_blend_spaces', 'strict_directions'):
                if key in animation:
                    config_data[key] = animation[key]

        if 'processing' in data:
            processing = data['processing']
            for key in ('workers', 'min_extraction_score', 'optimize_textures'):
                if key in processing:
                    config_data[key] = processing[key]

        if 'validation' in data:
            validation = data['validation']
            for key in ('max_texture_size', 'min_frame_rate', 'max_audio_duration',
                        'essential_characters'):
                if key in validation:
                    config_data[key] = validation[key]
            if 'extraction' in validation:
                expectations = default_extraction_expectations()
                for name, spec in validation['extraction'].items():
                    merged = dict(expectations.get(name, {"minimum": 0, "subfolders": [], "optional": False}))
                    merged.update(spec)
                    expectations[name] = merged
                config_data['extraction_expectations'] = expectations

        if 'report' in data:
            report = data['report']
            if 'expected_counts' in report:
                counts = dict(DEFAULT_EXPECTED_COUNTS)
                counts.update({k: int(v) for k, v in report['expected_counts'].items()})
                config_data['expected_counts'] = counts
            if 'json_name' in report:
                config_data['report_json_name'] = report['json_name']
            if 'html_name' in report:
                config_data['report_html_name'] = report['html_name']
            if 'generate_html' in report:
                config_data['generate_html_report'] = report['generate_html']

        return cls(**config_data)

    @classmethod
    def default(cls) -> "MigrationConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "MigrationConfig") -> "MigrationConfig":
        """Apply ASSET_MIGRATION_* environment variable overrides to configuration."""

        # Paths
        if os.getenv('ASSET_MIGRATION_EXTRACTION_ROOT'):
            config.extraction_root = os.getenv('ASSET_MIGRATION_EXTRACTION_ROOT', config.extraction_root)

        if os.getenv('ASSET_MIGRATION_OUTPUT_ROOT'):
            config.output_root = os.getenv('ASSET_MIGRATION_OUTPUT_ROOT', config.output_root)

        if os.getenv('ASSET_MIGRATION_ENABLED_CATEGORIES'):
            config.enabled_categories = [
                name.strip() for name in os.getenv('ASSET_MIGRATION_ENABLED_CATEGORIES', '').split(',')
                if name.strip()
            ]

        # Slicing
        if os.getenv('ASSET_MIGRATION_GRID_AUTO_DETECT'):
            config.grid_auto_detect = _env_bool(os.getenv('ASSET_MIGRATION_GRID_AUTO_DETECT', 'true'))

        for env_name, attr in (('ASSET_MIGRATION_GRID_ROWS', 'grid_rows'),
                               ('ASSET_MIGRATION_GRID_COLUMNS', 'grid_columns'),
                               ('ASSET_MIGRATION_CELL_WIDTH', 'cell_width'),
                               ('ASSET_MIGRATION_CELL_HEIGHT', 'cell_height'),
                               ('ASSET_MIGRATION_WORKERS', 'workers')):
            if os.getenv(env_name):
                setattr(config, attr, int(os.getenv(env_name, '0')))

        if os.getenv('ASSET_MIGRATION_NAMING_CONVENTION'):
            config.naming_convention = os.getenv('ASSET_MIGRATION_NAMING_CONVENTION', 'direction_first')

        # Animation
        if os.getenv('ASSET_MIGRATION_FRAME_RATE'):
            config.frame_rate = float(os.getenv('ASSET_MIGRATION_FRAME_RATE', '12'))

        for env_name, attr in (('ASSET_MIGRATION_STRICT_DIRECTIONS', 'strict_directions'),
                               ('ASSET_MIGRATION_USE_8_DIRECTIONS', 'use_8_directions'),
                               ('ASSET_MIGRATION_USE_BLEND_SPACES', 'use_blend_spaces'),
                               ('ASSET_MIGRATION_CREATE_COMBAT', 'create_combat'),
                               ('ASSET_MIGRATION_CREATE_EMOTE', 'create_emote')):
            if os.getenv(env_name):
                setattr(config, attr, _env_bool(os.getenv(env_name, 'false')))

        # Processing
        if os.getenv('ASSET_MIGRATION_MIN_EXTRACTION_SCORE'):
            config.min_extraction_score = float(os.getenv('ASSET_MIGRATION_MIN_EXTRACTION_SCORE', '0'))

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        for name in self.enabled_categories:
            if name not in CATEGORY_NAMES:
                errors.append(f"Unknown category in enabled_categories: {name}")

        if self.naming_convention not in NAMING_CONVENTIONS:
            errors.append(f"naming_convention must be one of {', '.join(NAMING_CONVENTIONS)}")

        if self.alignment not in ALIGNMENTS:
            errors.append(f"alignment must be one of {', '.join(ALIGNMENTS)}")

        if self.grid_rows <= 0 or self.grid_columns <= 0:
            errors.append("grid_rows and grid_columns must be positive")

        if self.cell_width < 0 or self.cell_height < 0:
            errors.append("cell_width and cell_height must not be negative")

        if self.frame_rate <= 0:
            errors.append("frame_rate must be positive")

        if self.workers <= 0:
            errors.append("workers must be positive")

        if not 0 <= self.min_extraction_score <= 1:
            errors.append("min_extraction_score must be between 0 and 1")

        if self.max_texture_size <= 0:
            errors.append("max_texture_size must be positive")

        for name, count in self.expected_counts.items():
            if count <= 0:
                errors.append(f"expected count for {name} must be positive")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Flat dictionary view used by the CLI display."""
        return asdict(self)
