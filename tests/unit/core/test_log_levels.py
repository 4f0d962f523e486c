"""Test file sink level filtering and format templates."""

import tempfile
from pathlib import Path

import pytest

from repoaudit.core.log import (
    ConsoleSink,
    FileSink,
    LogfireSink,
    Logger,
    level_name,
    setup_logger,
)


@pytest.fixture
def temp_log_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def file_logger(temp_log_dir, log_file, **file_kwargs):
    return setup_logger(
        log_root=temp_log_dir,
        run_name="test",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(log_file), **file_kwargs),
        logfire=LogfireSink(enabled=False),
    )


def test_trace_level_includes_all(temp_log_dir):
    log_file = temp_log_dir / "trace.log"
    logger = file_logger(temp_log_dir, log_file, level="trace")

    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.close()

    content = log_file.read_text()
    assert "TRACE message" in content
    assert "DEBUG message" in content
    assert "INFO message" in content


def test_info_level_filters_debug(temp_log_dir):
    log_file = temp_log_dir / "info.log"
    logger = file_logger(temp_log_dir, log_file, level="info")

    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.warn("WARN message")
    logger.close()

    content = log_file.read_text()
    assert "TRACE message" not in content
    assert "DEBUG message" not in content
    assert "INFO message" in content
    assert "WARN message" in content


def test_text_template_with_attributes(temp_log_dir):
    log_file = temp_log_dir / "text.log"
    logger = file_logger(
        temp_log_dir,
        log_file,
        level="info",
        format_template="[{level}] {message}",
    )

    logger.info("Repository: {repository}", repository="acme/widgets")
    logger.close()

    content = log_file.read_text()
    assert "[info] Repository: acme/widgets" in content
    assert "repository='acme/widgets'" in content


def test_path_template_expanded(temp_log_dir):
    logger = setup_logger(
        log_root=temp_log_dir,
        run_name="nightly",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, level="info"),
    )
    logger.info("hello")
    logger.close()

    assert (temp_log_dir / "nightly" / "repoaudit.log").exists()


def test_default_level_cascades_to_sinks():
    logger = Logger(level="warn")
    assert logger.console.level == "warn"
    assert logger.file.level == "warn"


def test_sink_level_not_overridden():
    logger = Logger(level="warn", console=ConsoleSink(level="debug"))
    assert logger.console.level == "debug"


@pytest.mark.parametrize("name", ["trace", "debug", "info", "warn", "error", "fatal"])
def test_level_name_round_trip(name):
    from repoaudit.core.log import LEVELS
    assert level_name(LEVELS[name]) == name
