"""
Utility modules for the simulation toolkit.
"""

from .logging_utils import setup_logger, get_logger
from .data_validation import validate_results_table, validate_probabilities

__all__ = [
    "setup_logger",
    "get_logger",
    "validate_results_table",
    "validate_probabilities",
]
