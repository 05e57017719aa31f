# File: tests/test_logger.py
import io
import logging

import pytest
from nrtk_sync.logger import SecretFilter, init_logging, mask_secret, register_secret


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging()


@pytest.mark.parametrize(
    "value,expected",
    [("", ""), ("abc", "***"), ("abcd", "****"), ("secret-token", "********oken")],
)
def test_mask_secret(value, expected):
    assert mask_secret(value) == expected


def test_secret_filter_masks_rendered_message():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    secret_filter = SecretFilter()
    secret_filter.secrets.add("very-secret-token")
    handler.addFilter(secret_filter)

    lg = logging.getLogger("nrtk-sync.test-filter")
    lg.propagate = False
    lg.addHandler(handler)
    try:
        lg.warning("fetch with %s failed", "very-secret-token")
        lg.warning("nothing to hide")
    finally:
        lg.removeHandler(handler)

    lines = stream.getvalue().splitlines()
    assert lines == ["fetch with *************oken failed", "nothing to hide"]


def test_registered_secret_never_reaches_log_file(tmp_path):
    log_file = tmp_path / "nrtk.log"
    lg = init_logging(level="DEBUG", log_file=log_file, log_format="%(message)s")
    register_secret("registered-secret-value")
    register_secret("")

    lg.info("Authorization: Token %s", "registered-secret-value")
    for handler in lg.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "registered-secret-value" not in content
    assert "Authorization: Token *******************alue" in content


def test_init_logging_replaces_handlers(tmp_path):
    lg = init_logging(log_file=tmp_path / "a.log")
    assert len(lg.handlers) == 2
    lg = init_logging()
    assert len(lg.handlers) == 1
    assert lg.propagate is False
