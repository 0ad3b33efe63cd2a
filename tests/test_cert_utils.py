"""
Test suite per utility di certificato, logging e configurazione
"""

import logging
from datetime import timedelta

import pytest

from config.pki_config import PKI_CONSTANTS, PKI_LOGGING
from utils.cert_utils import (
    common_name_to_file_name,
    format_certificate_info,
    get_certificate_expiry_time,
    get_certificate_not_before,
    get_certificate_ski,
    is_certificate_valid_at,
)
from utils.logger import PKILogger


class TestCertificateHelpers:
    """Test per cert_utils"""

    def test_ski_from_extension(self, root_certificate):
        ski = get_certificate_ski(root_certificate)
        assert len(ski) == 40
        assert ski == ski.upper()

    def test_times_are_timezone_aware(self, root_certificate):
        assert get_certificate_not_before(root_certificate).tzinfo is not None
        assert get_certificate_expiry_time(root_certificate).tzinfo is not None

    def test_validity_check(self, root_certificate):
        not_before = get_certificate_not_before(root_certificate)
        assert is_certificate_valid_at(root_certificate)
        assert not is_certificate_valid_at(root_certificate, not_before - timedelta(seconds=1))
        assert is_certificate_valid_at(root_certificate, not_before.replace(tzinfo=None))

    def test_format_info(self, root_certificate):
        info = format_certificate_info(root_certificate)
        assert "CN=SecureRoad Test Root" in info
        assert f"serial={root_certificate.serial_number}" in info
        assert "\n" not in info

    @pytest.mark.parametrize(
        "common_name,file_name",
        [
            ("example.com", "example_com"),
            ("*.example.com", "STAR_example_com"),
            ("My Service.local", "MyService_local"),
        ],
    )
    def test_common_name_to_file_name(self, common_name, file_name):
        assert common_name_to_file_name(common_name) == file_name


class TestConfiguration:
    """Test per le costanti PKI"""

    def test_constants_are_frozen(self):
        with pytest.raises(AttributeError):
            PKI_CONSTANTS.CLOCK_SKEW_TOLERANCE = timedelta(0)

    def test_defaults(self):
        assert PKI_CONSTANTS.CLOCK_SKEW_TOLERANCE == timedelta(hours=2)
        assert PKI_CONSTANTS.RSA_PUBLIC_EXPONENT == 65537
        assert PKI_CONSTANTS.DEFAULT_KEY_TYPE == "ecp256"


class TestLogger:
    """Test per PKILogger"""

    def test_cached_per_name(self):
        assert PKILogger.get_logger("CacheTest") is PKILogger.get_logger("CacheTest")

    def test_file_output(self, tmp_path):
        logger = PKILogger.get_logger(
            "FileOutputTest", log_dir=tmp_path, level=logging.DEBUG, console_output=False
        )
        logger.debug("skipped extension 1.2.3.4")
        for handler in logger.handlers:
            handler.flush()

        content = (tmp_path / "FileOutputTest.log").read_text(encoding="utf-8")
        assert "[pki.FileOutputTest] [DEBUG] skipped extension 1.2.3.4" in content

    def test_set_level(self):
        logger = PKILogger.get_logger("LevelTest", console_output=False)
        PKILogger.set_level("LevelTest", logging.WARNING)
        assert logger.level == logging.WARNING
        assert not logger.isEnabledFor(logging.INFO)

    def test_logging_format(self):
        assert "%(levelname)s" in PKI_LOGGING.FORMAT
