"""
Command-line interface for the asset migration pipeline.
Provides commands for validation, full runs, slicing, animation and reports.
"""

import sys
import os
import time
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from . import __version__
from .config import MigrationConfig, NAMING_CONVENTIONS, ALIGNMENTS

# Initialize typer app and rich console
app = typer.Typer(
    name="asset-migration",
    help="Asset migration pipeline - Turn raw extracted 2D game assets into an engine-ready asset tree",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]python scripts/asset_migration.py validate ExtractedAssets/Raw[/cyan]   Check extraction completeness
  [cyan]python scripts/asset_migration.py run[/cyan]                            Run the complete migration
  [cyan]python scripts/asset_migration.py slice sheet.png[/cyan]                Slice one sprite sheet
  [cyan]python scripts/asset_migration.py report ImportedAssets[/cyan]          Re-validate an output tree

[bold]Environment Variables:[/bold]
  Use [cyan]python scripts/asset_migration.py config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


@app.command()
def validate(
    root: Optional[Path] = typer.Argument(None, help="Extraction root (defaults to the configured one)"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    html: Optional[Path] = typer.Option(None, "--html", help="Write an HTML extraction report"),
    threshold: float = typer.Option(0.5, "--threshold", help="Score needed to be ready for processing")
):
    """Validate an extraction root before processing."""
    from .processing.extraction import ExtractionValidator
    from .processing.html_report import ReportRenderer

    console.print("[bold blue]Validating extraction...[/bold blue]")

    try:
        config = _load_config(config_file)
        summary = ExtractionValidator.from_config(config).validate(root or Path(config.extraction_root))

        table = Table(title=f"Extraction: {summary.root}")
        table.add_column("Category", style="cyan")
        table.add_column("Folder", width=8)
        table.add_column("Found", style="green")
        table.add_column("Expected", style="yellow")
        table.add_column("Score")

        for scan in summary.categories.values():
            folder = "[green]✓[/green]" if scan.folder_found else "[red]✗[/red]"
            name = f"{scan.name} (optional)" if scan.optional else scan.name
            table.add_row(name, folder, str(scan.found), str(scan.expected), f"{scan.score:.0%}")

        console.print(table)

        for scan in summary.categories.values():
            for item in scan.missing_items:
                console.print(f"  [yellow]•[/yellow] {item}")
        for error in summary.errors:
            console.print(f"[red]✗[/red] {error}")
        for warning in summary.warnings:
            console.print(f"[yellow]⚠[/yellow] {warning}")

        console.print(f"\n[bold]Overall score:[/bold] {summary.overall_score:.0%}")

        if html:
            path = ReportRenderer(config.template_dir or None).export_extraction_report(summary, html)
            console.print(f"[green]✓[/green] HTML report written to {path}")

    except Exception as e:
        console.print(f"[red]Error validating extraction:[/red] {e}")
        raise typer.Exit(1)

    if summary.ready_for_processing(threshold):
        console.print("[green]✓ Ready for processing[/green]")
    else:
        console.print("[yellow]Extraction is not ready for processing[/yellow]")
        raise typer.Exit(1)


@app.command()
def run(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    extraction_root: Optional[Path] = typer.Option(None, "--extraction-root", "-i", help="Extraction root"),
    output_root: Optional[Path] = typer.Option(None, "--output-root", "-o", help="Output root"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker threads for file processing"),
    steps: Optional[str] = typer.Option(None, "--steps", help="Comma-separated list of specific steps to run"),
    html: bool = typer.Option(True, "--html/--no-html", help="Write the HTML report"),
    show_summary: bool = typer.Option(True, "--summary/--no-summary", help="Show execution summary")
):
    """Run the complete migration pipeline."""
    from .pipeline import MigrationPipeline, PipelineStep, PipelineError

    console.print("[bold blue]Running asset migration...[/bold blue]")

    config = _load_config(config_file)
    if extraction_root:
        config.extraction_root = str(extraction_root)
    if output_root:
        config.output_root = str(output_root)
    if workers:
        config.workers = workers
    config.generate_html_report = html

    pipeline_steps = None
    if steps:
        pipeline_steps = []
        for step_name in (s.strip() for s in steps.split(',')):
            try:
                pipeline_steps.append(PipelineStep(step_name))
            except ValueError:
                console.print(f"[red]Invalid step name: {step_name}[/red]")
                console.print(f"Valid steps: {', '.join([s.value for s in PipelineStep])}")
                raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Starting...", total=1.0)

            def on_progress(stage: str, fraction: float) -> None:
                progress.update(task, description=stage, completed=fraction)

            pipeline = MigrationPipeline(config, progress_callback=on_progress)
            summary = pipeline.run(pipeline_steps)

    except PipelineError as e:
        console.print(f"[red]Pipeline error:[/red] {e}")
        if e.step:
            console.print(f"[red]Failed at step:[/red] {e.step.value}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    if summary.cancelled:
        console.print("[yellow]Migration cancelled[/yellow]")
    elif summary.state.failed_steps:
        console.print(f"[yellow]Migration completed with {len(summary.state.failed_steps)} failed steps[/yellow]")
        for failed_step in summary.state.failed_steps:
            result = summary.state.step_results.get(failed_step)
            if result:
                console.print(f"  [red]✗[/red] {failed_step.value}: {result.message}")
    else:
        console.print("[green]✓ Migration completed successfully![/green]")

    if show_summary:
        _display_pipeline_summary(summary)

    if summary.cancelled:
        raise typer.Exit(1)


@app.command()
def slice(
    sheet: Path = typer.Argument(..., help="Sprite sheet image"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Frame output directory"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    convention: Optional[str] = typer.Option(None, "--convention", help=f"Naming convention ({', '.join(NAMING_CONVENTIONS)})"),
    alignment: Optional[str] = typer.Option(None, "--alignment", help="Pivot alignment"),
    rows: Optional[int] = typer.Option(None, "--rows", help="Manual grid rows (disables auto detection)"),
    columns: Optional[int] = typer.Option(None, "--columns", help="Manual grid columns (disables auto detection)"),
    category: str = typer.Option("Characters", "--category", help="Asset category used for naming"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List frames without writing images")
):
    """Slice a sprite sheet into named frames."""
    from .processing.classifier import AssetCategory
    from .processing.slicer import SpriteSheetSlicer

    if not sheet.exists():
        console.print(f"[red]Sheet not found:[/red] {sheet}")
        raise typer.Exit(1)

    try:
        config = _load_config(config_file)
        if convention:
            config.naming_convention = convention
        if alignment:
            config.alignment = alignment
        if rows or columns:
            config.grid_auto_detect = False
            config.grid_rows = rows or config.grid_rows
            config.grid_columns = columns or config.grid_columns
            config.cell_width = 0
            config.cell_height = 0

        errors = config.validate()
        if errors:
            for error in errors:
                console.print(f"[red]•[/red] {error}")
            raise ValueError("invalid slicing options")

        slicer = SpriteSheetSlicer.from_config(config)
        asset_category = AssetCategory(category)
        if dry_run:
            result = slicer.slice_image(sheet, asset_category)
        else:
            result = slicer.apply(sheet, output_dir, asset_category)

    except Exception as e:
        console.print(f"[red]Error slicing sheet:[/red] {e}")
        raise typer.Exit(1)

    grid = result.grid
    console.print(f"[green]✓[/green] Grid {grid.rows}×{grid.columns} of {grid.cell_width}×{grid.cell_height}px, "
                  f"{len(result.frames)} frames")

    table = Table()
    table.add_column("Frame", style="cyan")
    table.add_column("Rect", style="green")
    table.add_column("Pivot", style="yellow")
    for frame in result.frames:
        table.add_row(frame.name, str(frame.rect), f"({frame.pivot[0]:g}, {frame.pivot[1]:g})")
    console.print(table)

    if not dry_run:
        console.print(f"[green]✓[/green] Wrote {len(result.written)} frames")
    for name in result.skipped:
        console.print(f"[yellow]⚠[/yellow] Skipped out-of-bounds frame {name}")


@app.command()
def animate(
    character_dir: Path = typer.Argument(..., help="Folder with one character's frame images"),
    output_root: Optional[Path] = typer.Option(None, "--output-root", "-o", help="Root the sprite paths are relative to"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    frame_rate: Optional[float] = typer.Option(None, "--frame-rate", help="Frames per second"),
    write: bool = typer.Option(True, "--write/--no-write", help="Write clips and controller")
):
    """Assemble clips and a state machine for one character folder."""
    from .processing.animation import AnimationAssembler, LoopPolicy, collect_frames, write_clip
    from .processing.state_machine import StateMachineGenerator, StateMachineOptions, write_controller

    if not character_dir.is_dir():
        console.print(f"[red]Character folder not found:[/red] {character_dir}")
        raise typer.Exit(1)

    try:
        config = _load_config(config_file)
        root = output_root or character_dir.parent
        frames = collect_frames(character_dir, root)
        if not frames:
            console.print(f"[yellow]No frame images found in {character_dir}[/yellow]")
            raise typer.Exit(1)

        assembler = AnimationAssembler(
            frame_rate=frame_rate or config.frame_rate,
            loop_policy=LoopPolicy(config.looping_labels),
            strict_directions=config.strict_directions,
        )
        name = character_dir.name
        clip_set = assembler.build_clips(name, frames)
        machine = StateMachineGenerator(StateMachineOptions.from_config(config)).generate(clip_set)

        if write:
            for clip in clip_set.clips.values():
                write_clip(clip, character_dir / f"{clip.name}.anim")
            write_controller(machine, character_dir / f"{name}.controller")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error assembling animations:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Clips for {name}")
    table.add_column("Clip", style="cyan")
    table.add_column("Frames", style="green")
    table.add_column("Length", style="yellow")
    table.add_column("Loop")
    table.add_column("Mirror")
    for key in sorted(clip_set.clips):
        clip = clip_set.clips[key]
        table.add_row(clip.name, str(clip.frame_count), f"{clip.duration:.2f}s",
                      "✓" if clip.loop else "", "✓" if clip.mirror else "")
    console.print(table)

    for layer in machine.layers:
        console.print(f"[bold]{layer.name}[/bold]: {', '.join(layer.state_names)} (default {layer.default_state})")
    for entry in machine.build_log:
        console.print(f"  [yellow]•[/yellow] {entry}")


@app.command()
def report(
    output_root: Optional[Path] = typer.Argument(None, help="Processed output root (defaults to the configured one)"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    json_path: Optional[Path] = typer.Option(None, "--json", help="JSON report path"),
    html: Optional[Path] = typer.Option(None, "--html", help="HTML report path"),
    timestamped: bool = typer.Option(False, "--timestamped", help="Name the JSON report AssetReport_<timestamp>.json")
):
    """Validate a processed output tree and export the migration report."""
    from .processing.report import MigrationReportBuilder, timestamped_report_name
    from .processing.html_report import ReportRenderer

    try:
        config = _load_config(config_file)
        root = output_root or Path(config.output_root)
        if not root.is_dir():
            console.print(f"[red]Output folder not found:[/red] {root}")
            raise typer.Exit(1)

        migration_report = MigrationReportBuilder.from_config(config).build_report(root)

        if json_path is None:
            json_path = root / (timestamped_report_name() if timestamped else config.report_json_name)
        migration_report.export_json(json_path)
        console.print(f"[green]✓[/green] JSON report written to {json_path}")

        if html:
            ReportRenderer(config.template_dir or None).export_migration_report(migration_report, html)
            console.print(f"[green]✓[/green] HTML report written to {html}")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error building report:[/red] {e}")
        raise typer.Exit(1)

    _display_report(migration_report)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage migration configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    try:
        loaded = _load_config(config_file)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error managing configuration:[/red] {e}")
        raise typer.Exit(1)

    if show:
        _display_config(loaded)

    if validate_config:
        errors = loaded.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show asset migration version information."""
    from importlib import metadata

    console.print("[bold]Asset Migration Pipeline[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    deps_status = []
    for name in ("Pillow", "numpy", "typer", "rich", "Jinja2", "toml", "soundfile"):
        try:
            deps_status.append((name, metadata.version(name), "✓"))
        except metadata.PackageNotFoundError:
            deps_status.append((name, "Not installed", "✗"))

    console.print("\n[bold]Dependencies:[/bold]")
    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for name, dep_version, status in deps_status:
        color = "green" if status == "✓" else "red"
        table.add_row(f"[{color}]{status}[/{color}]", name, dep_version)

    console.print(table)


def _load_config(config_file: Optional[Path]) -> MigrationConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    if config_file:
        if not config_file.exists():
            console.print(f"[red]Configuration file not found:[/red] {config_file}")
            raise typer.Exit(1)
        config = MigrationConfig.from_file(config_file)
        console.print(f"[dim]Using configuration: {config_file}[/dim]")
    else:
        default_configs = [
            Path("asset_migration.toml"),
            Path("asset_migration.json"),
            Path("scripts/asset_migration.toml"),
            Path("scripts/asset_migration.json")
        ]

        for config_path in default_configs:
            if config_path.exists():
                console.print(f"[dim]Using configuration: {config_path}[/dim]")
                config = MigrationConfig.from_file(config_path)
                break

    if config is None:
        console.print("[dim]Using default configuration[/dim]")
        config = MigrationConfig.default()
    else:
        config = MigrationConfig._apply_env_overrides(config)

    env_vars_used = [key for key in os.environ if key.startswith('ASSET_MIGRATION_')]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_pipeline_summary(summary) -> None:
    """Display migration run summary."""
    state = summary.state
    total_duration = 0
    if state.start_time:
        total_duration = time.time() - state.start_time

    console.print("\n[bold]Migration Summary[/bold]")
    console.print("=" * 50)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total execution time", f"{total_duration:.2f}s")
    table.add_row("Steps completed", str(len(state.completed_steps)))
    table.add_row("Steps failed", str(len(state.failed_steps)))
    table.add_row("Files processed", str(summary.files_processed))
    table.add_row("Files failed", str(summary.files_failed))
    table.add_row("Files skipped", str(summary.files_skipped))
    table.add_row("Sheets sliced", str(state.sheets_sliced))
    table.add_row("Clips written", str(state.clips_written))
    table.add_row("State machines", str(len(summary.state_machines)))
    table.add_row("Final score", f"{summary.final_score:.1%}")

    console.print(table)

    if state.step_results:
        console.print("\n[bold]Step Details[/bold]")
        step_table = Table()
        step_table.add_column("Step", style="cyan")
        step_table.add_column("Status", width=8)
        step_table.add_column("Duration", style="yellow")
        step_table.add_column("Message", style="dim")

        for step, result in state.step_results.items():
            status = "[green]✓[/green]" if result.success else "[red]✗[/red]"
            duration = f"{result.duration:.2f}s"
            message = result.message[:50] + "..." if len(result.message) > 50 else result.message

            step_table.add_row(step.value, status, duration, message)

        console.print(step_table)

    failed = [result for result in summary.file_results if result.status.value == "failed"]
    if failed:
        console.print(f"\n[bold]Failed files[/bold] ({len(failed)})")
        for result in failed[:20]:
            console.print(f"  [red]✗[/red] {result.source_path}: {result.message}")
        if len(failed) > 20:
            console.print(f"  [dim]... and {len(failed) - 20} more[/dim]")

    if summary.report is not None:
        _display_report(summary.report)


def _display_report(migration_report) -> None:
    """Display category progress and top findings of a migration report."""
    from .processing.report import format_file_size

    table = Table(title="Migration Progress")
    table.add_column("Category", style="cyan")
    table.add_column("Valid", style="green")
    table.add_column("Total")
    table.add_column("Expected", style="yellow")
    table.add_column("Progress")

    for category in migration_report.categories:
        table.add_row(category.name, str(category.valid_count), str(category.total_count),
                      str(category.expected), f"{category.progress:.1%}")

    console.print(table)
    console.print(f"Total size: {format_file_size(migration_report.total_file_size_bytes)}, "
                  f"overall progress {migration_report.overall_progress:.1%}")

    counts = migration_report.count_by_severity()
    if any(counts.values()):
        console.print("Missing assets: " + ", ".join(f"{count} {label}" for label, count in counts.items() if count))

    colors = {"Critical": "red", "High": "yellow", "Medium": "magenta", "Low": "dim"}
    for missing in migration_report.missing_assets[:15]:
        color = colors[missing.severity.label]
        console.print(f"  [{color}]{missing.severity.label}[/{color}] {missing.category}: {missing.name} ({missing.reason})")

    for recommendation in migration_report.recommendations:
        console.print(f"[bold]→[/bold] {recommendation}")


def _display_config(config: MigrationConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Asset Migration Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    # Paths
    table.add_row("Extraction Root", config.extraction_root)
    table.add_row("Output Root", config.output_root)
    table.add_row("Enabled Categories", ", ".join(config.enabled_categories))

    # Slicing
    table.add_row("Grid Auto Detect", str(config.grid_auto_detect))
    table.add_row("Manual Grid", f"{config.grid_rows}×{config.grid_columns} ({config.cell_width}×{config.cell_height}px)")
    table.add_row("Naming Convention", config.naming_convention)
    table.add_row("Alignment", config.alignment)

    # Animation
    table.add_row("Frame Rate", f"{config.frame_rate:g}")
    table.add_row("Looping Labels", ", ".join(config.looping_labels))
    table.add_row("Combat / Emote Layers", f"{config.create_combat} / {config.create_emote}")
    table.add_row("8 Directions", str(config.use_8_directions))
    table.add_row("Blend Spaces", str(config.use_blend_spaces))
    table.add_row("Strict Directions", str(config.strict_directions))

    # Processing
    table.add_row("Workers", str(config.workers))
    table.add_row("Min Extraction Score", f"{config.min_extraction_score:.0%}")
    table.add_row("Optimize Textures", str(config.optimize_textures))

    # Validation and report
    table.add_row("Max Texture Size", str(config.max_texture_size))
    table.add_row("Essential Characters", ", ".join(config.essential_characters))
    table.add_row("Report Files", f"{config.report_json_name}, {config.report_html_name}")

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Asset Migration Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("ASSET_MIGRATION_EXTRACTION_ROOT", "Extraction root directory", "ExtractedAssets/Raw"),
        ("ASSET_MIGRATION_OUTPUT_ROOT", "Output root directory", "ImportedAssets"),
        ("ASSET_MIGRATION_ENABLED_CATEGORIES", "Comma-separated categories to process", "Characters,Maps"),
        ("ASSET_MIGRATION_GRID_AUTO_DETECT", "Detect sheet grids (true/false)", "true"),
        ("ASSET_MIGRATION_GRID_ROWS", "Manual grid rows", "8"),
        ("ASSET_MIGRATION_GRID_COLUMNS", "Manual grid columns", "8"),
        ("ASSET_MIGRATION_CELL_WIDTH", "Manual cell width in pixels", "64"),
        ("ASSET_MIGRATION_CELL_HEIGHT", "Manual cell height in pixels", "64"),
        ("ASSET_MIGRATION_NAMING_CONVENTION", f"Frame naming ({', '.join(NAMING_CONVENTIONS)})", "direction_first"),
        ("ASSET_MIGRATION_FRAME_RATE", "Animation frames per second", "12"),
        ("ASSET_MIGRATION_WORKERS", "Worker threads", "4"),
        ("ASSET_MIGRATION_MIN_EXTRACTION_SCORE", "Required extraction score (0-1)", "0.5"),
        ("ASSET_MIGRATION_STRICT_DIRECTIONS", "Fail on unknown directions (true/false)", "false"),
        ("ASSET_MIGRATION_USE_8_DIRECTIONS", "8 or 4 direction blend spaces (true/false)", "true"),
        ("ASSET_MIGRATION_USE_BLEND_SPACES", "Directional blend spaces (true/false)", "true"),
        ("ASSET_MIGRATION_CREATE_COMBAT", "Generate the combat layer (true/false)", "true"),
        ("ASSET_MIGRATION_CREATE_EMOTE", "Generate the emote layer (true/false)", "false"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print(f"\n[dim]Alignments: {', '.join(ALIGNMENTS)}[/dim]")
    console.print("[dim]Set these environment variables to override configuration file settings.[/dim]")
    console.print("[dim]Example: export ASSET_MIGRATION_WORKERS=8[/dim]")


if __name__ == "__main__":
    app()
