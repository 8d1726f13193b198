"""
Configuration management for the simulation toolkit.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Application configuration settings."""
    
    # Base paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    RUNS_DIR: Path = Path(os.getenv("RUNS_DIR", str(PROJECT_ROOT / "runs")))
    
    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    
    # Simulation settings
    DEFAULT_RANDOM_SEED: int = int(os.getenv("RANDOM_SEED", "42"))
    # Ceiling applied when a driver is not given max_steps
    DEFAULT_MAX_STEPS: int = int(os.getenv("MAX_STEPS", "10000"))
    
    # Batch settings
    N_WORKERS: int = int(os.getenv("N_WORKERS", "1"))
    PARALLEL_BACKEND: str = os.getenv("PARALLEL_BACKEND", "thread")
    SHOW_PROGRESS: bool = os.getenv("SHOW_PROGRESS", "false").lower() == "true"
    
    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.RUNS_DIR.mkdir(parents=True, exist_ok=True)
