"""
Centralized logging for the patient validation engine.

Provides consistent log formatting across modules with PHI masking,
so Emirates IDs, names and contact details never reach log files in
clear text.
"""

import logging
import logging.handlers
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any
import json


class PatientValidationLogger:
    """
    Logger wrapper with consistent formatting and PHI masking.

    Features:
    - Structured key=value extras serialized as JSON
    - Console output plus optional rotating log files
    - PHI masking for identity and contact fields
    """

    # Sensitive field patterns to mask
    SENSITIVE_FIELDS = {
        'emirates_id', 'name_en', 'name_ar', 'date_of_birth', 'dob',
        'phone', 'email', 'address', 'emergency_contact'
    }

    # 784-YYYY-NNNNNNN-C appearing inside free text
    EMIRATES_ID_PATTERN = re.compile(r'\b784-?\d{4}-?\d{7}-?\d\b')

    def __init__(
        self,
        name: str,
        log_dir: str = "logs",
        log_level: str = "INFO",
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        enable_console: bool = True,
        enable_file: bool = False
    ):
        """
        Initialize the logger.

        Args:
            name: Logger name (usually module name)
            log_dir: Directory for log files
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            max_bytes: Max size of log file before rotation
            backup_count: Number of backup files to keep
            enable_console: Whether to log to console
            enable_file: Whether to log to file
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.handlers = []  # Clear any existing handlers

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        simple_formatter = logging.Formatter(
            '%(levelname)s | %(name)s | %(message)s'
        )

        if enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(simple_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            log_file = os.path.join(log_dir, f"{name}_{datetime.now():%Y%m%d}.log")
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            self.logger.addHandler(file_handler)

    def _mask_sensitive_data(self, data: Any) -> Any:
        """
        Mask sensitive data in log extras.

        Args:
            data: Data to mask (dict, list, or string)

        Returns:
            Data with sensitive fields masked
        """
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                if any(sensitive in str(key).lower() for sensitive in self.SENSITIVE_FIELDS):
                    if isinstance(value, str) and len(value) > 4:
                        masked[key] = f"{value[:2]}***{value[-2:]}"
                    else:
                        masked[key] = "***MASKED***"
                else:
                    masked[key] = self._mask_sensitive_data(value)
            return masked
        elif isinstance(data, (list, tuple)):
            return [self._mask_sensitive_data(item) for item in data]
        elif isinstance(data, str):
            return self.EMIRATES_ID_PATTERN.sub('784-****-*******-*', data)
        else:
            return data

    def _format(self, message: str, kwargs: Dict[str, Any]) -> str:
        message = self._mask_sensitive_data(message)
        if kwargs:
            masked_kwargs = self._mask_sensitive_data(kwargs)
            message = f"{message} | {json.dumps(masked_kwargs, default=str, ensure_ascii=False)}"
        return message

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format(message, kwargs))

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._format(message, kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._format(message, kwargs))

    def error(self, message: str, exception: Optional[BaseException] = None, **kwargs):
        """Log error message with optional exception."""
        message = self._format(message, kwargs)
        if exception:
            message = f"{message} | Exception: {type(exception).__name__}: {exception}"
        self.logger.error(message, exc_info=exception)

    def critical(self, message: str, exception: Optional[BaseException] = None, **kwargs):
        """Log critical message with optional exception."""
        message = self._format(message, kwargs)
        if exception:
            message = f"{message} | Exception: {type(exception).__name__}: {exception}"
        self.logger.critical(message, exc_info=exception)

    # Specialized logging methods

    def log_validation(
        self,
        record_id: Optional[str],
        is_valid: bool,
        completeness: int,
        error_count: int,
        warning_count: int
    ):
        """Log a single-record validation outcome."""
        self.debug(
            "Record validated",
            record_id=record_id,
            is_valid=is_valid,
            completeness=completeness,
            errors=error_count,
            warnings=warning_count
        )

    def log_performance(
        self,
        operation: str,
        duration_seconds: float,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log performance metrics."""
        self.debug(
            "Performance metric",
            operation=operation,
            duration_seconds=round(duration_seconds, 3),
            details=details if details else {}
        )


# Global logger instances for different modules
_loggers: Dict[str, PatientValidationLogger] = {}


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    **kwargs
) -> PatientValidationLogger:
    """
    Get or create a logger instance.

    Args:
        name: Logger name (usually module name)
        log_level: Override default log level
        **kwargs: Additional arguments for PatientValidationLogger

    Returns:
        PatientValidationLogger instance
    """
    if name not in _loggers:
        if log_level is None:
            log_level = os.environ.get('PDV_LOG_LEVEL', 'INFO')
        kwargs.setdefault('log_dir', os.environ.get('PDV_LOG_DIR', 'logs'))
        kwargs.setdefault(
            'enable_file',
            os.environ.get('PDV_LOG_TO_FILE', 'false').strip().lower() in ('1', 'true', 'yes', 'on')
        )

        _loggers[name] = PatientValidationLogger(name, log_level=log_level, **kwargs)

    return _loggers[name]


# Example usage in other modules:
# from patient_validation.utils.logger import get_logger
# logger = get_logger(__name__)
# logger.info("Batch started", records=25)
