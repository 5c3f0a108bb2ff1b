"""
CSV export of availability reports.
"""

import csv
from pathlib import Path
from loguru import logger

from panther.modules.base import ProbeOutcome
from panther.report.models import AvailabilityReport


class CSVHandler:
    """Handle CSV file operations for probe outcomes."""

    fieldnames = [
        'timestamp',
        'owner_id',
        'location',
        'status',
        'status_code',
        'method',
        'duration',
        'detail',
    ]

    def __init__(self, csv_file: Path):
        """
        Initialize CSV handler.

        Args:
            csv_file: Path to CSV file
        """
        self.csv_file = Path(csv_file)

        # Create CSV file with headers if it doesn't exist
        if not self.csv_file.exists():
            self._create_csv()

    def _create_csv(self):
        """Create CSV file with headers."""
        self.csv_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writeheader()

        logger.debug(f"Created CSV file: {self.csv_file}")

    def _row(self, owner_id: str, outcome: ProbeOutcome) -> dict:
        return {
            'timestamp': outcome.timestamp.isoformat(),
            'owner_id': owner_id,
            'location': outcome.location,
            'status': outcome.status.value,
            'status_code': '' if outcome.status_code is None else outcome.status_code,
            'method': outcome.method or '',
            'duration': f"{outcome.duration:.3f}",
            'detail': outcome.detail or '',
        }

    def write_report(self, report: AvailabilityReport) -> int:
        """
        Append every outcome of a report, in report order.

        Returns:
            Number of rows written
        """
        count = 0
        with open(self.csv_file, 'a', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            for owner_id, outcome in report.iter_outcomes():
                writer.writerow(self._row(owner_id, outcome))
                count += 1

        logger.debug(f"Wrote {count} row(s) to {self.csv_file}")
        return count

    def read_results(self) -> list:
        """
        Read all rows from CSV.

        Returns:
            List of row dictionaries
        """
        results = []

        if not self.csv_file.exists():
            return results

        with open(self.csv_file, 'r', newline='') as f:
            reader = csv.DictReader(f)
            results = list(reader)

        return results
