"""Tests for logging, error handling and format helpers."""

import asyncio
import logging
from datetime import date

import pytest

from patient_validation.utils.date_utils import (
    is_future_date,
    is_past_date,
    parse_date,
)
from patient_validation.utils.error_handler import (
    ErrorCode,
    ErrorHandler,
    ErrorResult,
    RecordFetchError,
    ValidationEngineError,
)
from patient_validation.utils.format_utils import (
    is_blank,
    mask_emirates_id,
    mask_phi,
    validate_emirates_id,
)
from patient_validation.utils.logger import PatientValidationLogger, get_logger


class TestFormatUtils:
    """Test suite for format helpers."""

    def test_is_blank(self):
        """Test what counts as absent."""
        assert is_blank(None)
        assert is_blank("  ")
        assert is_blank([])
        assert is_blank({})
        assert not is_blank(False)
        assert not is_blank(0)
        assert not is_blank("x")

    def test_emirates_id(self):
        """Test the Emirates ID helper."""
        assert validate_emirates_id("784-1990-1234567-1")
        assert not validate_emirates_id("784-90-123-1")
        assert not validate_emirates_id("")
        assert not validate_emirates_id(None)

    def test_masking(self):
        """Test PHI masking for display."""
        assert mask_emirates_id("784-1990-1234567-1") == "784-****-*****67-1"
        assert mask_emirates_id("garbage") == "784-****-*******-*"
        assert mask_phi("Ahmed", "name_en") == "A***d"
        assert mask_phi(None, "name_en") == "[REDACTED]"


class TestDateUtils:
    """Test suite for date helpers."""

    def test_parse_formats(self):
        """Test the accepted date formats."""
        assert parse_date("2025-10-06") == date(2025, 10, 6)
        assert parse_date("06/10/2025") == date(2025, 10, 6)
        assert parse_date("October 6, 2025") == date(2025, 10, 6)
        assert parse_date("2025-13-01") is None
        assert parse_date("") is None

    def test_reference_comparisons(self):
        """Test future/past checks against an explicit reference."""
        reference = date(2025, 10, 6)
        assert is_future_date("2025-10-07", reference)
        assert not is_future_date("2025-10-06", reference)
        assert is_future_date("2025-10-06", reference, strict=False)
        assert is_past_date("2025-10-05", reference)
        assert not is_past_date("not a date", reference)


class TestErrorHandler:
    """Test suite for error wrapping."""

    def test_wrap_operation_success(self):
        """Test that successful calls are wrapped."""
        result = ErrorHandler().wrap_operation(lambda x: x * 2, 21)
        assert result.success
        assert result.value == 42
        assert result.error is None

    def test_wrap_operation_converts_unexpected(self):
        """Test that unexpected exceptions become engine errors."""
        def explode():
            raise KeyError("missing")

        result = ErrorHandler().wrap_operation(explode, error_code=ErrorCode.RECORD_FETCH_FAILED)
        assert not result.success
        assert result.error.code == ErrorCode.RECORD_FETCH_FAILED
        assert result.error.details["error_type"] == "KeyError"
        assert result.value is None
        assert isinstance(result.error, ValidationEngineError)

    @pytest.mark.asyncio
    async def test_wrap_async_timeout(self):
        """Test that timeouts get their own code."""
        async def slow():
            raise asyncio.TimeoutError()

        result = await ErrorHandler().wrap_async(slow)
        assert result.error.code == ErrorCode.RECORD_FETCH_TIMEOUT

    @pytest.mark.asyncio
    async def test_wrap_async_keeps_engine_errors(self):
        """Test that engine errors pass through unchanged."""
        error = RecordFetchError("P1", "locked")

        async def fetch():
            raise error

        result = await ErrorHandler().wrap_async(fetch)
        assert result.error is error
        assert result.error.details == {"record_id": "P1", "reason": "locked"}

    def test_error_result_ok(self):
        """Test the success constructor."""
        assert ErrorResult.ok(None).success


class TestLogger:
    """Test suite for the PHI-masking logger."""

    def test_masks_sensitive_extras(self, caplog):
        """Test that PHI keys and embedded Emirates IDs are masked."""
        logger = PatientValidationLogger("patient_validation.tests.masking")
        with caplog.at_level(logging.INFO, logger="patient_validation.tests.masking"):
            logger.info(
                "Lookup for 784-1990-1234567-1",
                emirates_id="784-1990-1234567-1",
                phone_number="+971501234567",
                record_id="PAT-001",
            )

        text = caplog.text
        assert "784-1990-1234567-1" not in text
        assert "+971501234567" not in text
        assert "PAT-001" in text

    def test_get_logger_is_cached(self):
        """Test that loggers are created once per name."""
        assert get_logger("patient_validation.tests.cached") is get_logger("patient_validation.tests.cached")

    def test_file_logging(self, tmp_path):
        """Test the rotating file handler."""
        logger = PatientValidationLogger(
            "patient_validation.tests.file",
            log_dir=str(tmp_path),
            enable_console=False,
            enable_file=True,
        )
        logger.info("Catalog loaded", rules=3)
        for handler in logger.logger.handlers:
            handler.flush()
        written = "".join(p.read_text(encoding="utf-8") for p in tmp_path.glob("*.log"))
        assert "Catalog loaded" in written
