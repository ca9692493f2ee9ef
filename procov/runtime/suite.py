"""
Suite level coverage run.

Collects the finished class coverage of every test class that shares one
run and freezes them into a single AggregatedClassCoverage.
"""

from pathlib import Path

from procov.config import CoverageConfig
from procov.coverage.aggregated import AggregatedClassCoverage
from procov.coverage.class_coverage import ClassCoverage
from procov.definitions.provider import CachingSnapshotProvider, GraphSnapshotProvider
from procov.errors import CoverageError
from procov.logging import get_logger
from procov.reporting.json_report import SUITE_REPORT_FILE_NAME, JSONReportBuilder
from procov.runtime.state import CoverageRunState

logger = get_logger(__name__)


class SuiteRunState:
    """
    Coverage of several test classes.

    Classes are added until ``aggregate`` is called. After that the
    aggregate is frozen and adding another class is an error.
    """

    def __init__(
        self,
        provider: GraphSnapshotProvider,
        config: CoverageConfig | None = None,
    ):
        self.config = config or CoverageConfig()
        # One cache for the whole suite, so each definition is parsed once
        if isinstance(provider, CachingSnapshotProvider):
            self.provider = provider
        else:
            self.provider = CachingSnapshotProvider(provider)
        self._class_coverages: list[ClassCoverage] = []
        self._aggregate: AggregatedClassCoverage | None = None

    def start_class(self, test_class_name: str) -> CoverageRunState:
        """Create the run state of a new test class."""
        self._ensure_open()
        return CoverageRunState(test_class_name, self.provider, self.config)

    def finish_class(self, state: CoverageRunState) -> ClassCoverage:
        """Finalize a class run and add its coverage to the suite."""
        class_coverage = state.finish_class()
        self.add_class_coverage(class_coverage)
        return class_coverage

    def add_class_coverage(self, class_coverage: ClassCoverage) -> None:
        """
        Add a finished class coverage.

        Raises:
            CoverageError: If the suite was already aggregated
        """
        self._ensure_open()
        self._class_coverages.append(class_coverage)

    def _ensure_open(self) -> None:
        if self._aggregate is not None:
            msg = "Suite coverage was already aggregated; no more classes can be added"
            raise CoverageError(msg)

    @property
    def is_frozen(self) -> bool:
        return self._aggregate is not None

    @property
    def class_coverages(self) -> list[ClassCoverage]:
        return list(self._class_coverages)

    def aggregate(self) -> AggregatedClassCoverage:
        """Freeze the suite and return its aggregate. Repeated calls return the same object."""
        if self._aggregate is None:
            self._aggregate = AggregatedClassCoverage(self._class_coverages)
            logger.info(
                "Aggregated suite coverage",
                classes=len(self._class_coverages),
                processes=self._aggregate.process_keys,
            )
        return self._aggregate

    def write_report(self, output_path: str | Path | None = None) -> Path | None:
        """
        Freeze the suite and write the suite report.

        Returns:
            The written path, or None when report export is disabled
        """
        self.aggregate()
        if output_path is None:
            if self.config.report_dir is None:
                return None
            output_path = Path(self.config.report_dir) / SUITE_REPORT_FILE_NAME
        return JSONReportBuilder(self._class_coverages).write(output_path)
