"""Tests for daybook.core.utils.logging."""

import os
import sys

import pytest
from loguru import logger

from daybook.core.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink(tmp_dir):
    log_file = os.path.join(tmp_dir, "daybook.log")
    setup_logging(level="info", log_file=log_file)
    logger.debug("hidden")
    logger.info("pulled 3 entries")
    logger.remove()

    with open(log_file) as f:
        content = f.read()
    assert "pulled 3 entries" in content
    assert "hidden" not in content


def test_stderr_level(capsys):
    setup_logging(level="WARNING")
    logger.info("quiet")
    logger.warning("push failed")
    err = capsys.readouterr().err
    assert "push failed" in err
    assert "quiet" not in err
