"""
HTML Report Generator for procov.

Renders a JSON coverage report document into a self-contained HTML page
with per-definition, per-class and per-method coverage bars.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, Template

# Embedded HTML template with dark mode support
HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>procov Coverage Report - {{ report_title }}</title>
    <style>
        :root {
            --bg-primary: #ffffff;
            --bg-secondary: #f5f5f5;
            --text-primary: #333333;
            --text-secondary: #666666;
            --border-color: #ddd;
            --low: #dc2626;
            --medium: #f59e0b;
            --high: #22c55e;
        }

        @media (prefers-color-scheme: dark) {
            :root {
                --bg-primary: #1f2937;
                --bg-secondary: #111827;
                --text-primary: #f3f4f6;
                --text-secondary: #9ca3af;
                --border-color: #374151;
            }
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            background: var(--bg-secondary);
            color: var(--text-primary);
            margin: 0;
            padding: 2rem;
        }

        .model {
            background: var(--bg-primary);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            padding: 1rem 1.5rem;
            margin-bottom: 1.5rem;
        }

        .bar {
            background: var(--bg-secondary);
            border-radius: 4px;
            height: 8px;
            width: 200px;
            display: inline-block;
        }

        .bar span {
            display: block;
            height: 100%;
            border-radius: 4px;
        }

        .low { background: var(--low); }
        .medium { background: var(--medium); }
        .high { background: var(--high); }

        table { border-collapse: collapse; width: 100%; }
        td, th { text-align: left; padding: 0.25rem 0.5rem; border-bottom: 1px solid var(--border-color); }
        .muted { color: var(--text-secondary); }
    </style>
</head>
<body>
    <h1>{{ report_title }}</h1>
    <p class="muted">Generated {{ generation_time }}</p>
    <p>Overall process coverage: <strong>{{ pct(report.coveragePercentage) }}</strong></p>
    <p>Overall decision coverage: <strong>{{ pct(report.decisionCoveragePercentage) }}</strong></p>

    {% for model in report.bpmnModels %}
    <section class="model">
        <h2>{{ model.name or model.key }} <span class="muted">{{ model.resourceName }}</span></h2>
        <p>
            <span class="bar"><span class="{{ level(model.coveragePercentage) }}" style="width: {{ width(model.coveragePercentage) }}%"></span></span>
            {{ pct(model.coveragePercentage) }} of {{ model.totalElementCount }} elements
        </p>
        {% for test_class in model.testClasses %}
        <h3>{{ test_class.name }} &mdash; {{ pct(test_class.coveragePercentage) }}</h3>
        <table>
            <tr><th>Method</th><th>Coverage</th><th>Flow nodes</th><th>Sequence flows</th></tr>
            {% for method in test_class.testMethods %}
            <tr>
                <td>{{ method.name }}</td>
                <td>{{ pct(method.coveragePercentage) }}</td>
                <td>{{ method.flowNodes | map(attribute="key") | join(", ") }}</td>
                <td>{{ method.sequenceFlows | map(attribute="key") | join(", ") }}</td>
            </tr>
            {% endfor %}
        </table>
        {% endfor %}
    </section>
    {% endfor %}

    {% for model in report.dmnModels %}
    <section class="model">
        <h2>{{ model.name or model.key }} <span class="muted">{{ model.resourceName }}</span></h2>
        <p>{{ pct(model.coveragePercentage) }} of {{ model.ruleCount }} rules</p>
        {% for test_class in model.testClasses %}
        <h3>{{ test_class.name }} &mdash; {{ pct(test_class.coveragePercentage) }}</h3>
        <table>
            <tr><th>Method</th><th>Coverage</th><th>Rules</th></tr>
            {% for method in test_class.testMethods %}
            <tr>
                <td>{{ method.name }}</td>
                <td>{{ pct(method.coveragePercentage) }}</td>
                <td>{{ method.rules | map(attribute="key") | join(", ") }}</td>
            </tr>
            {% endfor %}
        </table>
        {% endfor %}
    </section>
    {% endfor %}

    <footer class="muted">Generated by procov</footer>
</body>
</html>
"""


def _pct(value: float | None) -> str:
    if value is None:
        return "undefined"
    return f"{value * 100:.1f}%"


def _width(value: float | None) -> float:
    if value is None:
        return 0.0
    return round(value * 100, 1)


def _level(value: float | None) -> str:
    if value is None or value < 0.5:
        return "low"
    if value < 0.8:
        return "medium"
    return "high"


class HTMLReportGenerator:
    """
    Generate HTML reports from coverage report documents.

    Creates a self-contained HTML page; no assets are written alongside it.
    """

    def __init__(self, template: str | None = None):
        """
        Initialize HTML report generator.

        Args:
            template: Optional custom Jinja2 template string
        """
        self.template_str = template or HTML_TEMPLATE
        self.env = Environment(autoescape=True)
        self.template: Template = self.env.from_string(self.template_str)

    def render(self, report: dict[str, Any], report_title: str = "Coverage Report") -> str:
        """Render a report document to an HTML string."""
        return self.template.render(
            report=report,
            report_title=report_title,
            generation_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            pct=_pct,
            width=_width,
            level=_level,
        )

    def generate(
        self,
        output_path: str | Path,
        report: dict[str, Any],
        report_title: str = "Coverage Report",
    ) -> Path:
        """
        Generate HTML report and write to file.

        Args:
            output_path: Path to write HTML report
            report: Report document as produced by JSONReportBuilder
            report_title: Title for the report
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(report, report_title), encoding="utf-8")
        return output_path
