import logging

import pytest

from slotforge.core.config import Settings, resolve_log_level
from slotforge.core.exceptions import ConfigurationError


def test_log_level_is_normalised_and_resolved():
    settings = Settings(log_level=" debug ")
    assert settings.log_level == "DEBUG"
    assert resolve_log_level(settings.log_level) == logging.DEBUG
    assert resolve_log_level("WARNING") == logging.WARNING


def test_unknown_log_level_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_log_level("LOUD")
    assert exc_info.value.status_code == 500
    assert "LOUD" in exc_info.value.message


def test_cors_origins_accept_comma_separated_text():
    settings = Settings(cors_origins="http://a.test, http://b.test")
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
