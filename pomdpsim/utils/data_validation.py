"""
Data validation utilities for probability tables and batch results.
"""

from typing import List, Optional
import numpy as np
import pandas as pd
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


def validate_probabilities(
    probs: np.ndarray,
    name: str = "distribution",
    atol: float = 1e-6,
) -> bool:
    """
    Validate that an array holds probability rows (non-negative, each row sums to 1).
    
    Args:
        probs: 1-D probability vector or 2-D matrix of probability rows
        name: Label used in error messages
        atol: Tolerance on the row sums
    
    Returns:
        True if validation passes, raises ValueError otherwise
    
    Raises:
        ValueError: If any entry is negative or a row does not sum to 1
    """
    arr = np.asarray(probs, dtype=float)
    if arr.ndim not in (1, 2):
        raise ValueError(f"{name} must be 1-D or 2-D, got shape {arr.shape}")
    if arr.size == 0:
        raise ValueError(f"{name} is empty")
    if np.any(arr < 0):
        raise ValueError(f"{name} contains negative probabilities")
    if not np.allclose(arr.sum(axis=-1), 1.0, atol=atol):
        raise ValueError(f"{name} rows do not sum to 1")
    return True


def validate_results_table(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    min_rows: int = 1
) -> bool:
    """
    Validate a batch result table.
    
    Args:
        df: DataFrame produced by a batch run
        required_columns: List of column names that must be present
        min_rows: Minimum number of rows required
    
    Returns:
        True if validation passes, raises ValueError otherwise
    
    Raises:
        ValueError: If validation fails
    """
    if not isinstance(df, pd.DataFrame):
        raise ValueError("Input must be a pandas DataFrame")
    
    if len(df) < min_rows:
        raise ValueError(f"DataFrame must have at least {min_rows} rows")
    
    if required_columns:
        missing = set(required_columns) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")
    
    logger.debug(f"Results table validation passed: {len(df)} rows, {len(df.columns)} columns")
    return True
