from __future__ import annotations

import logging

from certimport.logging.init import (
    LOGGER_NAME,
    get_logger,
    log_summary,
    setup_logging,
)


def test_labels(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.error("boom")
    log_summary("file=x.xlsx status=success")
    logger.debug("hidden")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "INFO hello",
        "WARN careful",
        "ERROR boom",
        "SUMMARY file=x.xlsx status=success",
    ]


def test_debug_mode(capsys):
    logger = setup_logging(debug=True)
    logger.debug("details")
    assert "DEBUG details" in capsys.readouterr().out


def test_setup_is_idempotent():
    first = setup_logging()
    second = setup_logging(debug=True)
    assert first is second
    assert len(first.handlers) == 1
    assert first.level == logging.DEBUG
    assert first.propagate is False


def test_module_loggers_share_handler(capsys):
    setup_logging()
    logging.getLogger(f"{LOGGER_NAME}.services.orchestrator").warning("row=3 field=email")
    assert capsys.readouterr().out == "WARN row=3 field=email\n"


def test_exception_is_appended(capsys):
    logger = get_logger()
    try:
        raise RuntimeError("no connection")
    except RuntimeError:
        logger.exception("database")
    out = capsys.readouterr().out
    assert out.startswith("ERROR database\n")
    assert "RuntimeError: no connection" in out
