"""Tests for the logging setup."""
from __future__ import annotations

import logging

from greencity_mailer import logging_conf, settings
from greencity_mailer.logging_conf import LOG_FORMAT, QueueContextFilter, build_config


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("greencity_mailer", logging.INFO, __file__, 1, "hello", None, None)
    record.__dict__.update(extra)
    return record


def test_filter_fills_missing_queue_context():
    record = _record()

    assert QueueContextFilter().filter(record) is True
    assert logging.Formatter(LOG_FORMAT).format(record).endswith("[- -] hello")


def test_filter_keeps_queue_context_from_extra():
    record = _record(queue="verify-email-queue", message_id="m1")
    QueueContextFilter().filter(record)

    assert "[verify-email-queue m1] hello" in logging.Formatter(LOG_FORMAT).format(record)


def test_file_handler_follows_log_level():
    config = build_config("DEBUG")

    assert config["handlers"]["file"]["level"] == "DEBUG"
    assert config["handlers"]["file"]["filename"].endswith("mailer.log")
    assert config["root"]["level"] == "DEBUG"


def test_betterstack_handler_only_with_token(monkeypatch):
    monkeypatch.setattr(settings, "BETTERSTACK_SOURCE_TOKEN", None)
    assert "betterstack" not in build_config("INFO")["handlers"]

    monkeypatch.setattr(settings, "BETTERSTACK_SOURCE_TOKEN", "tok")
    monkeypatch.setattr(settings, "BETTERSTACK_INGEST_HOST", "in.example.com")
    handler = build_config("INFO")["handlers"]["betterstack"]

    assert handler["source_token"] == "tok"
    assert handler["host"] == "in.example.com"
    assert "betterstack" not in build_config("INFO", with_betterstack=False)["handlers"]


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "chatty")

    logger = logging_conf.setup_logging()

    assert logging.getLogger().level == logging.INFO
    assert logger.name == "greencity_mailer"
