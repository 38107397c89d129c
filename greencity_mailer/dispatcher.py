"""Routes queue messages to the email sender."""
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, Sequence

from greencity_mailer import settings
from greencity_mailer.errors import NotFoundError, UnknownQueueError
from greencity_mailer.logging_conf import logger
from greencity_mailer.messages import (
    AddEcoNewsMessage,
    ChangePlaceStatusMessage,
    EmailNotification,
    PasswordRecoveryMessage,
    PlaceEntry,
    PlaceStatus,
    ReportSubscriber,
    SendReportMessage,
    VerifyEmailMessage,
)

PASSWORD_RECOVERY_QUEUE = "password-recovery-queue"
CHANGE_PLACE_STATUS_QUEUE = "change-place-status"
ADD_ECO_NEWS_QUEUE = "eco_news_queue"
VERIFY_EMAIL_QUEUE = "verify-email-queue"
SEND_REPORT_QUEUE = "send-report"

ECO_NEWS_NOT_FOUND = "Eco news doesn't exist by this id: "

# Payload decoder for each queue
MESSAGE_TYPES = {
    PASSWORD_RECOVERY_QUEUE: PasswordRecoveryMessage,
    CHANGE_PLACE_STATUS_QUEUE: ChangePlaceStatusMessage,
    ADD_ECO_NEWS_QUEUE: AddEcoNewsMessage,
    VERIFY_EMAIL_QUEUE: VerifyEmailMessage,
    SEND_REPORT_QUEUE: SendReportMessage,
}


class EmailSender(Protocol):
    def send_restore_email(self, user_id: int, first_name: str, email: str, token: str) -> None: ...

    def send_change_place_status_email(
        self, first_name: str, place_name: str, status: PlaceStatus, email: str
    ) -> None: ...

    def send_new_news_for_subscriber(self, subscribers: Iterable[Any], news: AddEcoNewsMessage) -> None: ...

    def send_verification_email(self, user_id: int, name: str, email: str, token: str) -> None: ...

    def send_added_new_places_report_email(
        self,
        subscribers: Sequence[ReportSubscriber],
        categories_with_places: Mapping[str, Sequence[PlaceEntry]],
        email_notification: EmailNotification,
    ) -> None: ...


class NewsRepository(Protocol):
    def find_by_id(self, news_id: int) -> Optional[Any]: ...


class TranslationRepository(Protocol):
    def find_by_news_and_language(self, news: Any, language_code: str) -> Any: ...


class SubscriberDirectory(Protocol):
    def find_all(self) -> Sequence[Any]: ...


class NotificationDispatcher:
    """
    Binds one handler per email queue.

    Every handler forwards its message to exactly one email sender call.
    Collaborator failures are never caught here; redelivery is up to the queue.
    """

    def __init__(
        self,
        email_sender: EmailSender,
        news_repository: NewsRepository,
        translation_repository: TranslationRepository,
        subscriber_directory: SubscriberDirectory,
        language_code: Optional[str] = None,
    ):
        self.email_sender = email_sender
        self.news_repository = news_repository
        self.translation_repository = translation_repository
        self.subscriber_directory = subscriber_directory
        self.language_code = language_code or settings.DEFAULT_LANGUAGE_CODE

    def routes(self) -> Dict[str, Callable[[Any], None]]:
        """Queue name to handler mapping."""
        return {
            PASSWORD_RECOVERY_QUEUE: self.on_password_recovery,
            CHANGE_PLACE_STATUS_QUEUE: self.on_change_place_status,
            ADD_ECO_NEWS_QUEUE: self.on_add_eco_news,
            VERIFY_EMAIL_QUEUE: self.on_verify_email,
            SEND_REPORT_QUEUE: self.on_send_report,
        }

    def dispatch(self, queue_name: str, payload: Mapping[str, Any]) -> None:
        """Decode a raw payload from a queue and run its handler."""
        handler = self.routes().get(queue_name)
        if handler is None:
            raise UnknownQueueError(f"No handler bound to queue: {queue_name}")
        message = MESSAGE_TYPES[queue_name].from_payload(payload)
        handler(message)

    def on_password_recovery(self, message: PasswordRecoveryMessage) -> None:
        self.email_sender.send_restore_email(
            message.user_id,
            message.user_first_name,
            message.user_email,
            message.recovery_token,
        )

    def on_change_place_status(self, message: ChangePlaceStatusMessage) -> None:
        self.email_sender.send_change_place_status_email(
            message.author_first_name,
            message.place_name,
            message.place_status,
            message.author_email,
        )

    def on_add_eco_news(self, message: AddEcoNewsMessage) -> None:
        """Send a new eco news item to every news subscriber, titled in the default language."""
        news = self.news_repository.find_by_id(message.id)
        if news is None:
            raise NotFoundError(f"{ECO_NEWS_NOT_FOUND}{message.id}")

        translation = self.translation_repository.find_by_news_and_language(news, self.language_code)
        payload = message.with_title(translation.title)

        subscribers = self.subscriber_directory.find_all()
        logger.info(f"Sending eco news {message.id} to {len(subscribers)} subscribers")
        self.email_sender.send_new_news_for_subscriber(subscribers, payload)

    def on_verify_email(self, message: VerifyEmailMessage) -> None:
        self.email_sender.send_verification_email(message.id, message.name, message.email, message.token)

    def on_send_report(self, message: SendReportMessage) -> None:
        self.email_sender.send_added_new_places_report_email(
            message.subscribers,
            message.categories_with_places,
            message.email_notification,
        )
