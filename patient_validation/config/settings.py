"""
Application Settings

Settings for the validation engine loaded from environment variables,
with defaults suitable for local development and tests.
"""

import os
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_BATCH_CONCURRENCY, DEFAULT_RESULT_CACHE_SIZE


# Catalog shipped with the package
DEFAULT_RULES_PATH = Path(__file__).parent / "patient_rules.yaml"


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Engine settings read from the environment.

    Environment variables:
        PDV_RULES_PATH: Path to the rule catalog YAML
        PDV_BATCH_CONCURRENCY: Max in-flight record fetches per batch
        PDV_RESULT_CACHE_SIZE: Cached results kept by content hash (0 disables)
        PDV_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        PDV_LOG_DIR: Directory for rotating log files
        PDV_LOG_TO_FILE: Whether to write log files at all
    """

    def __init__(self):
        rules_path: Optional[str] = os.getenv("PDV_RULES_PATH")
        self.rules_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
        self.batch_concurrency = int(
            os.getenv("PDV_BATCH_CONCURRENCY", str(DEFAULT_BATCH_CONCURRENCY))
        )
        self.result_cache_size = int(
            os.getenv("PDV_RESULT_CACHE_SIZE", str(DEFAULT_RESULT_CACHE_SIZE))
        )
        self.log_level = os.getenv("PDV_LOG_LEVEL", "INFO")
        self.log_dir = os.getenv("PDV_LOG_DIR", "logs")
        self.log_to_file = _env_bool("PDV_LOG_TO_FILE", False)

        if self.batch_concurrency < 1:
            raise ValueError(
                f"PDV_BATCH_CONCURRENCY must be at least 1, got {self.batch_concurrency}"
            )
        if self.result_cache_size < 0:
            raise ValueError(
                f"PDV_RESULT_CACHE_SIZE cannot be negative, got {self.result_cache_size}"
            )


def get_settings() -> Settings:
    """
    Read settings from the current environment.

    Returns:
        Settings instance
    """
    return Settings()
