"""
procov Reporting.

Export coverage as JSON documents and HTML summaries.
"""

from procov.reporting.html import HTMLReportGenerator
from procov.reporting.json_report import (
    REPORT_FILE_NAME,
    SUITE_REPORT_FILE_NAME,
    JSONReportBuilder,
    percentage_value,
)

__all__ = [
    "HTMLReportGenerator",
    "JSONReportBuilder",
    "REPORT_FILE_NAME",
    "SUITE_REPORT_FILE_NAME",
    "percentage_value",
]
