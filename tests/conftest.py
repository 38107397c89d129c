"""Pytest configuration: isolated directories and fake collaborators."""
from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

_TMP = tempfile.mkdtemp(prefix="greencity-mailer-tests-")
os.environ["LOGS_DIR"] = os.path.join(_TMP, "logs")
os.environ["SPOOL_BASE_DIR"] = os.path.join(_TMP, "spool")
os.environ.pop("BETTERSTACK_SOURCE_TOKEN", None)

from greencity_mailer.db import EcoNewsRecord, EcoNewsTranslation, NewsSubscriber
from greencity_mailer.dispatcher import NotificationDispatcher


class RecordingSender:
    """Email sender double that records every call."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls: List[tuple] = []
        self.error = error

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error

    def send_restore_email(self, user_id, first_name, email, token):
        self._record("send_restore_email", user_id, first_name, email, token)

    def send_change_place_status_email(self, first_name, place_name, status, email):
        self._record("send_change_place_status_email", first_name, place_name, status, email)

    def send_new_news_for_subscriber(self, subscribers, news):
        self._record("send_new_news_for_subscriber", subscribers, news)

    def send_verification_email(self, user_id, name, email, token):
        self._record("send_verification_email", user_id, name, email, token)

    def send_added_new_places_report_email(self, subscribers, categories_with_places, email_notification):
        self._record("send_added_new_places_report_email", subscribers, categories_with_places, email_notification)


class FakeNewsRepository:
    def __init__(self, records: Dict[int, EcoNewsRecord]):
        self.records = records
        self.lookups: List[int] = []

    def find_by_id(self, news_id):
        self.lookups.append(news_id)
        return self.records.get(news_id)


class FakeTranslationRepository:
    def __init__(self, titles: Dict[tuple, str]):
        self.titles = titles
        self.lookups: List[tuple] = []

    def find_by_news_and_language(self, news, language_code):
        self.lookups.append((news.id, language_code))
        return EcoNewsTranslation(news.id, language_code, self.titles[(news.id, language_code)])


class FakeSubscriberDirectory:
    def __init__(self, subscribers):
        self.subscribers = subscribers

    def find_all(self):
        return list(self.subscribers)


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def subscribers() -> List[NewsSubscriber]:
    return [
        NewsSubscriber(id=1, email="olena@example.com", unsubscribe_token="t1"),
        NewsSubscriber(id=2, email="taras@example.com", unsubscribe_token="t2"),
    ]


@pytest.fixture()
def dispatcher(sender, subscribers) -> NotificationDispatcher:
    return NotificationDispatcher(
        email_sender=sender,
        news_repository=FakeNewsRepository({7: EcoNewsRecord(id=7)}),
        translation_repository=FakeTranslationRepository({(7, "ua"): "Translated Title"}),
        subscriber_directory=FakeSubscriberDirectory(subscribers),
        language_code="ua",
    )


@pytest.fixture()
def creation_date() -> datetime:
    return datetime(2024, 5, 17, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def eco_news_payload(creation_date) -> Dict[str, Any]:
    return {
        "id": 7,
        "title": "Draft",
        "imagePath": "/img/7.png",
        "text": "body",
        "creationDate": creation_date.isoformat(),
    }
