"""Database lookups used to enrich eco news notifications."""
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from greencity_mailer import settings
from greencity_mailer.errors import NotFoundError
from greencity_mailer.logging_conf import logger


@dataclass(frozen=True)
class EcoNewsRecord:
    id: int
    creation_date: Optional[datetime] = None
    image_path: Optional[str] = None


@dataclass(frozen=True)
class EcoNewsTranslation:
    eco_news_id: int
    language_code: str
    title: str


@dataclass(frozen=True)
class NewsSubscriber:
    id: int
    email: str
    unsubscribe_token: Optional[str] = None


class Database:
    """Database connection shared by the repositories."""

    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or settings.DATABASE_URL
        self._conn = None
        # psycopg2 connections may be shared, cursors may not
        self._lock = threading.Lock()

    @property
    def conn(self):
        """Get or create database connection."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.dsn)
        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            self._conn = None

    @contextmanager
    def cursor(self):
        """Context manager for cursor with auto-commit/rollback."""
        with self._lock:
            conn = self.conn
            cur = conn.cursor(cursor_factory=RealDictCursor)
            try:
                yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cur.close()


class EcoNewsRepository:
    def __init__(self, db: Database):
        self.db = db

    def find_by_id(self, news_id: int) -> Optional[EcoNewsRecord]:
        """Fetch an eco news item, or None when it does not exist."""
        with self.db.cursor() as cur:
            cur.execute("""
                SELECT id, creation_date, image_path
                FROM eco_news
                WHERE id = %s
            """, (news_id,))
            row = cur.fetchone()
        if row is None:
            return None
        return EcoNewsRecord(
            id=row["id"],
            creation_date=row.get("creation_date"),
            image_path=row.get("image_path"),
        )


class EcoNewsTranslationRepository:
    def __init__(self, db: Database):
        self.db = db

    def find_by_news_and_language(self, news: EcoNewsRecord, language_code: str) -> EcoNewsTranslation:
        """
        Fetch the translation of an eco news item for a language.

        Raises:
            NotFoundError if the item has no translation in that language
        """
        with self.db.cursor() as cur:
            cur.execute("""
                SELECT t.eco_news_id, l.code AS language_code, t.title
                FROM eco_news_translations t
                JOIN languages l ON l.id = t.language_id
                WHERE t.eco_news_id = %s AND l.code = %s
                LIMIT 1
            """, (news.id, language_code))
            row = cur.fetchone()
        if row is None:
            raise NotFoundError(
                f"Eco news translation doesn't exist for news {news.id} and language {language_code}"
            )
        return EcoNewsTranslation(
            eco_news_id=row["eco_news_id"],
            language_code=row["language_code"],
            title=row["title"],
        )


class NewsSubscriberDirectory:
    def __init__(self, db: Database):
        self.db = db

    def find_all(self) -> List[NewsSubscriber]:
        """Return every news subscriber."""
        with self.db.cursor() as cur:
            cur.execute("""
                SELECT id, email, unsubscribe_token
                FROM news_subscribers
                ORDER BY id ASC
            """)
            rows = cur.fetchall()
        logger.debug(f"Loaded {len(rows)} news subscribers")
        return [
            NewsSubscriber(id=r["id"], email=r["email"], unsubscribe_token=r.get("unsubscribe_token"))
            for r in rows
        ]
