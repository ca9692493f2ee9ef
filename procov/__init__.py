"""
procov - Process graph coverage for tests.

Tracks which flow nodes, sequence flows and decision rules of BPMN and DMN
definitions each test method exercised, and rolls that up to test class and
test suite coverage.

Usage:
    procov snapshot <path>          # Show declared elements of definitions
    procov summary <report.json>    # Summarize a coverage report
    procov html <report.json>       # Render a report as HTML
    procov init-config              # Print a sample configuration
"""

__version__ = "0.1.0"
