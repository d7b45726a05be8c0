"""Test logging setup and contextual fields.

Tests for pixelmatch.utils.logging_config:
    - JSON file output carries context fields
    - Human format layout
    - Repeated setup_logging() does not duplicate handlers
    - Python warnings are routed to the log; noisy libraries quieted
    - Unknown levels are rejected

Run:
    pytest tests/test_logging_config.py -v
"""

import json
import logging
import warnings

import pytest

from pixelmatch.utils import logging_config
from pixelmatch.utils.logging_config import (
    ContextFormatter,
    pop_context,
    push_context,
    setup_logging,
)


pytestmark = pytest.mark.usefixtures("clean_logging")


def _record(msg="hello", level=logging.INFO):
    return logging.LogRecord("pixelmatch.test", level, __file__, 1, msg, None, None)


def test_json_file_output_includes_context(tmp_path):
    log_file = tmp_path / "logs" / "run.jsonl"
    setup_logging("DEBUG", str(log_file), json=True, to_stderr=False, context={"app": "pixelmatch"})
    push_context(expected="a.png")

    logging.getLogger("pixelmatch.test").info("compared")
    for handler in logging_config._installed:
        handler.flush()

    line = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert line["lvl"] == "INFO"
    assert line["app"] == "pixelmatch"
    assert line["expected"] == "a.png"
    assert line["msg"] == "compared"


def test_human_format():
    push_context(app="pixelmatch")
    out = ContextFormatter("human").format(_record("different pixels: 3"))
    parts = [p.strip() for p in out.split("|")]
    assert parts[1] == "INFO"
    assert parts[2] == "app=pixelmatch"
    assert parts[3] == "different pixels: 3"


def test_pop_context_keys():
    push_context(a=1, b=2)
    pop_context(keys=["a"])
    data = json.loads(ContextFormatter("json").format(_record()))
    assert "a" not in data
    assert data["b"] == 2


def test_setup_is_idempotent():
    setup_logging("INFO")
    handlers = setup_logging("WARNING")
    root = logging.getLogger()
    assert len(handlers) == 1
    assert sum(h in root.handlers for h in handlers) == 1
    assert root.level == logging.WARNING


def test_unknown_level():
    with pytest.raises(ValueError):
        setup_logging("LOUD")


def test_unknown_format_mode():
    with pytest.raises(ValueError):
        ContextFormatter("xml")


def test_warnings_captured_and_libs_quieted(tmp_path):
    log_file = tmp_path / "run.log"
    pil_logger = logging.getLogger("PIL")
    previous = pil_logger.level
    try:
        setup_logging("DEBUG", str(log_file), to_stderr=False, quiet_libs=["PIL"])
        assert pil_logger.level == logging.WARNING

        warnings.warn("palette image with transparency", UserWarning)
        for handler in logging_config._installed:
            handler.flush()
    finally:
        pil_logger.setLevel(previous)

    text = log_file.read_text(encoding="utf-8")
    assert "palette image with transparency" in text
