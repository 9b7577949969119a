# test_logging_config.py
# Description: Tests for loguru sink configuration
#
# Imports
#
# 3rd-Party Imports
import pytest
from loguru import logger
#
# Local Imports
from date_gutter.logging_config import configure_logging
#
########################################################################################################################
#
# Test Fixtures:

@pytest.fixture(autouse=True)
def restore_loguru():
    yield
    logger.remove()
    logger.add(lambda message: None, level="DEBUG")

########################################################################################################################
#
# Tests:

class TestConfigureLogging:

    def test_file_sink_receives_messages(self, isolated_temp_dir):
        log_file = isolated_temp_dir / "logs" / "date_gutter.log"
        config = {"logging": {"log_level": "WARNING", "file_log_level": "DEBUG"}}
        path = configure_logging(config, console=False, log_file=log_file)
        logger.debug("prefix engine debug line")
        logger.remove()
        assert path == log_file
        assert "prefix engine debug line" in log_file.read_text(encoding="utf-8")

    def test_env_override_for_console_level(self, isolated_temp_dir, monkeypatch, capsys):
        monkeypatch.setenv("DATE_GUTTER_LOG_LEVEL", "error")
        configure_logging({"logging": {"log_level": "DEBUG"}}, console=True,
                          log_file=isolated_temp_dir / "date_gutter.log")
        logger.warning("should not reach stderr")
        logger.error("should reach stderr")
        captured = capsys.readouterr()
        assert "should reach stderr" in captured.err
        assert "should not reach stderr" not in captured.err

#
# End of test_logging_config.py
########################################################################################################################
