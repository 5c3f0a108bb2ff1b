"""
Storage and logging components.
"""

from panther.storage.logger import add_run_log, setup_logging
from panther.storage.csv_handler import CSVHandler

__all__ = [
    "setup_logging",
    "add_run_log",
    "CSVHandler",
]
