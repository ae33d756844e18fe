import sys

import pytest
from loguru import logger

from watermarker.logger import setup_logger


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sinks(tmp_path, restore_logger):
    log_file = tmp_path / "logs" / "watermarker.log"
    setup_logger("INFO", log_file)

    logger.info("watermarked media #42")
    logger.error("could not decode media #7")

    assert "watermarked media #42" in log_file.read_text()
    errors = (tmp_path / "logs" / "errors.log").read_text()
    assert "could not decode media #7" in errors
    assert "watermarked media #42" not in errors


def test_console_only(tmp_path, restore_logger, capsys):
    setup_logger("WARNING")

    logger.info("hidden")
    logger.warning("shown")

    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out
    assert list(tmp_path.iterdir()) == []
