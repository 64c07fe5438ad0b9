"""
HTML rendering of migration and extraction reports with Jinja2.
"""

from pathlib import Path
from typing import Optional, Union

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, TemplateError, select_autoescape

from .extraction import ExtractionSummary
from .report import MigrationReport, ReportExportError, format_file_size
from ..utils.fileio import atomic_write_text


MIGRATION_TEMPLATE = "migration_report.html.j2"
EXTRACTION_TEMPLATE = "extraction_report.html.j2"

_BASE_STYLE = """
body { font-family: sans-serif; margin: 2em; color: #222; }
table { border-collapse: collapse; margin-bottom: 1.5em; }
th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; }
th { background: #eee; }
.bar { background: #ddd; width: 200px; height: 12px; }
.bar span { display: block; height: 12px; background: #4a4; }
.Critical { color: #b00; font-weight: bold; }
.High { color: #d60; }
.Medium { color: #a80; }
.Low { color: #666; }
"""

BUILTIN_TEMPLATES = {
    MIGRATION_TEMPLATE: """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Asset Migration Report</title>
<style>{{ style }}</style>
</head>
<body>
<h1>Asset Migration Report</h1>
<p>Generated {{ report.generation_timestamp }} for <code>{{ report.output_root }}</code></p>

<h2>Statistics</h2>
<table>
<tr><th>Total assets</th><td>{{ report.total_assets }}</td></tr>
<tr><th>Valid assets</th><td>{{ report.valid_assets }}</td></tr>
<tr><th>Missing textures</th><td>{{ report.missing_texture_count }}</td></tr>
<tr><th>Broken references</th><td>{{ report.broken_reference_count }}</td></tr>
<tr><th>Total size</th><td>{{ report.total_file_size_bytes | file_size }}</td></tr>
<tr><th>Overall progress</th><td>{{ report.overall_progress | percent }}</td></tr>
</table>

<h2>Categories</h2>
<table>
<tr><th>Category</th><th>Valid</th><th>Total</th><th>Expected</th><th>Progress</th></tr>
{% for category in report.categories %}
<tr>
<td>{{ category.name }}</td>
<td>{{ category.valid_count }}</td>
<td>{{ category.total_count }}</td>
<td>{{ category.expected }}</td>
<td><div class="bar"><span style="width: {{ category.progress | bar_width }}%"></span></div>{{ category.progress | percent }}</td>
</tr>
{% endfor %}
</table>

{% if report.missing_assets %}
<h2>Missing assets</h2>
<table>
<tr><th>Severity</th><th>Category</th><th>Name</th><th>Reason</th></tr>
{% for missing in report.missing_assets %}
<tr>
<td class="{{ missing.severity.label }}">{{ missing.severity.label }}</td>
<td>{{ missing.category }}</td>
<td>{{ missing.name }}</td>
<td>{{ missing.reason }}</td>
</tr>
{% endfor %}
</table>
{% endif %}

{% set findings = report.findings() %}
{% if findings %}
<h2>Findings</h2>
<table>
<tr><th>Severity</th><th>Path</th><th>Issues</th></tr>
{% for entry in findings %}
<tr>
<td class="{{ entry.severity.label }}">{{ entry.severity.label }}</td>
<td>{{ entry.path }}</td>
<td>{{ entry.issues | join(", ") }}</td>
</tr>
{% endfor %}
</table>
{% endif %}

{% if report.recommendations %}
<h2>Recommendations</h2>
<ul>
{% for recommendation in report.recommendations %}
<li>{{ recommendation }}</li>
{% endfor %}
</ul>
{% endif %}
</body>
</html>
""",
    EXTRACTION_TEMPLATE: """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Extraction Validation Report</title>
<style>{{ style }}</style>
</head>
<body>
<h1>Extraction Validation Report</h1>
<p>Root <code>{{ summary.root }}</code>, overall score {{ summary.overall_score | percent }}</p>

<table>
<tr><th>Category</th><th>Folder</th><th>Found</th><th>Expected</th><th>Score</th></tr>
{% for scan in summary.categories.values() %}
<tr>
<td>{{ scan.name }}{% if scan.optional %} (optional){% endif %}</td>
<td>{{ "yes" if scan.folder_found else "missing" }}</td>
<td>{{ scan.found }}</td>
<td>{{ scan.expected }}</td>
<td>{{ scan.score | percent }}</td>
</tr>
{% endfor %}
</table>

{% for scan in summary.categories.values() if scan.missing_items %}
<h3>{{ scan.name }}</h3>
<ul>
{% for item in scan.missing_items %}
<li>{{ item }}</li>
{% endfor %}
</ul>
{% endfor %}

{% if summary.errors %}
<h2>Errors</h2>
<ul>
{% for error in summary.errors %}
<li class="Critical">{{ error }}</li>
{% endfor %}
</ul>
{% endif %}

{% if summary.warnings %}
<h2>Warnings</h2>
<ul>
{% for warning in summary.warnings %}
<li>{{ warning }}</li>
{% endfor %}
</ul>
{% endif %}
</body>
</html>
""",
}


class ReportRenderer:
    """Renders reports to HTML."""

    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        """
        Initialize renderer.

        Args:
            template_dir: Optional directory whose templates override the built-in ones
        """
        loaders = []
        if template_dir:
            loaders.append(FileSystemLoader(str(template_dir)))
        loaders.append(DictLoader(BUILTIN_TEMPLATES))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=select_autoescape(enabled_extensions=("html", "j2"), default_for_string=True),
        )
        self._setup_template_filters()

    def _setup_template_filters(self) -> None:
        """Set up custom Jinja2 filters."""

        def percent(value: float) -> str:
            return f"{value * 100:.1f}%"

        def bar_width(value: float) -> int:
            return int(round(max(0.0, min(value, 1.0)) * 100))

        self.env.filters['file_size'] = format_file_size
        self.env.filters['percent'] = percent
        self.env.filters['bar_width'] = bar_width

    def render(self, template_name: str, **context) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(style=_BASE_STYLE, **context)
        except TemplateError as e:
            raise ReportExportError(f"Failed to render {template_name}: {e}")

    def render_migration_report(self, report: MigrationReport) -> str:
        return self.render(MIGRATION_TEMPLATE, report=report)

    def render_extraction_report(self, summary: ExtractionSummary) -> str:
        return self.render(EXTRACTION_TEMPLATE, summary=summary)

    def export_migration_report(self, report: MigrationReport, path: Union[str, Path]) -> Path:
        """Render and write the migration report atomically."""
        html = self.render_migration_report(report)
        try:
            return atomic_write_text(path, html)
        except OSError as e:
            raise ReportExportError(f"Failed to write {path}: {e}")

    def export_extraction_report(self, summary: ExtractionSummary, path: Union[str, Path]) -> Path:
        """Render and write the extraction report atomically."""
        html = self.render_extraction_report(summary)
        try:
            return atomic_write_text(path, html)
        except OSError as e:
            raise ReportExportError(f"Failed to write {path}: {e}")
