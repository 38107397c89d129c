"""HTTP client for the platform's email service."""
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import requests

from greencity_mailer import settings
from greencity_mailer.db import NewsSubscriber
from greencity_mailer.errors import EmailDeliveryError
from greencity_mailer.logging_conf import logger
from greencity_mailer.messages import (
    AddEcoNewsMessage,
    EmailNotification,
    PlaceEntry,
    PlaceStatus,
    ReportSubscriber,
)

MAX_ATTEMPTS = 3
DEFAULT_RETRY_AFTER = 60


def retry_after_seconds(value: Optional[str]) -> int:
    """Seconds to wait for a Retry-After header given as delay-seconds or an HTTP date."""
    if not value:
        return DEFAULT_RETRY_AFTER
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable Retry-After header: {value!r}")
        return DEFAULT_RETRY_AFTER
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, int((when - datetime.now(timezone.utc)).total_seconds()))


class EmailServiceClient:
    """Sends email requests to the email service, one endpoint per email kind."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.EMAIL_SERVICE_URL or "").rstrip("/")
        self.timeout = timeout or settings.EMAIL_SERVICE_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        token = token or settings.EMAIL_SERVICE_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def send_restore_email(self, user_id: int, first_name: str, email: str, token: str) -> None:
        self._post("/email/restorePassword", {
            "userId": user_id,
            "userFirstName": first_name,
            "userEmail": email,
            "recoveryToken": token,
        })

    def send_change_place_status_email(
        self, first_name: str, place_name: str, status: PlaceStatus, email: str
    ) -> None:
        self._post("/email/changePlaceStatus", {
            "authorFirstName": first_name,
            "placeName": place_name,
            "placeStatus": status.value,
            "authorEmail": email,
        })

    def send_new_news_for_subscriber(
        self, subscribers: Iterable[NewsSubscriber], news: AddEcoNewsMessage
    ) -> None:
        self._post("/email/addEcoNews", {
            "subscribers": [
                {"id": s.id, "email": s.email, "unsubscribeToken": s.unsubscribe_token}
                for s in subscribers
            ],
            "news": news.to_payload(),
        })

    def send_verification_email(self, user_id: int, name: str, email: str, token: str) -> None:
        self._post("/email/verifyEmail", {
            "id": user_id,
            "name": name,
            "email": email,
            "token": token,
        })

    def send_added_new_places_report_email(
        self,
        subscribers: Sequence[ReportSubscriber],
        categories_with_places: Mapping[str, Sequence[PlaceEntry]],
        email_notification: EmailNotification,
    ) -> None:
        self._post("/email/sendReport", {
            "subscribers": [s.to_payload() for s in subscribers],
            "categoriesDtoWithPlacesDtoMap": {
                category: [p.to_payload() for p in places]
                for category, places in categories_with_places.items()
            },
            "emailNotification": email_notification.value,
        })

    def _post(self, endpoint: str, body: Dict[str, Any], retry_count: int = 0) -> None:
        """POST a send request, retrying on throttling and transient failures."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)

            if response.status_code == 429 and retry_count < MAX_ATTEMPTS:
                retry_after = retry_after_seconds(response.headers.get("Retry-After"))
                logger.warning(f"Email service rate limited. Waiting {retry_after}s...")
                time.sleep(retry_after)
                return self._post(endpoint, body, retry_count + 1)

            if response.status_code >= 500 and retry_count < MAX_ATTEMPTS:
                wait_time = 2 ** retry_count
                logger.warning(f"Email service error {response.status_code}. Retrying in {wait_time}s...")
                time.sleep(wait_time)
                return self._post(endpoint, body, retry_count + 1)

            response.raise_for_status()
            logger.info(f"Email request accepted: {endpoint}")

        except requests.exceptions.HTTPError as e:
            raise EmailDeliveryError(f"Email service rejected {endpoint}: {e}") from e
        except requests.exceptions.RequestException as e:
            if retry_count < MAX_ATTEMPTS and isinstance(
                e, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
            ):
                wait_time = 2 ** retry_count
                time.sleep(wait_time)
                return self._post(endpoint, body, retry_count + 1)
            raise EmailDeliveryError(f"Email service request failed for {endpoint}: {e}") from e
