"""Console logging with labeled prefixes and the structured issue log."""

from .init import SUMMARY_LEVEL, get_logger, log_summary, reset_logging, setup_logging
from .issue_log import IssueLogBuffer

__all__ = [
    "SUMMARY_LEVEL",
    "IssueLogBuffer",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
]
