"""Notifier implementation: SMTP email plus in-app notification rows."""

import logging
from email.message import EmailMessage
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from alert_engine.adapters.base import Notifier
from alert_engine.config.environment import EnvironmentConfig
from alert_engine.config.models import EmailConfig
from alert_engine.domain.models import AlertClass, InAppNotification
from alert_engine.logging import get_logger
from alert_engine.persistence.database import get_session
from alert_engine.persistence.exceptions import PersistenceError
from alert_engine.persistence.repositories import NotificationRepository
from alert_engine.persistence.sinks import SessionScope

from .models import NotificationTemplateError, SMTPDeliveryError
from .payloads import PropertyView, subject_for, template_for
from .smtp_client import SMTPClient, build_sender_address, validate_recipient
from .templates import TemplateRenderer


class SmtpNotifier(Notifier):
    """Delivers alert emails over SMTP and stores in-app notifications.

    ``send_alert_email`` returns False instead of raising for the expected
    failures (bad recipient, template error, SMTP error); the dispatcher
    treats False and an exception the same way.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        session_scope: SessionScope = get_session,
        logger_instance: Optional[logging.Logger] = None,
    ):
        email_config = email_config or EmailConfig()
        self.env_config = env_config
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient(
            env_config, use_tls=email_config.use_tls, timeout=email_config.smtp_timeout
        )
        self._session_scope = session_scope
        self.logger = logger_instance or get_logger(__name__, component="notification")

    def build_message(
        self,
        buyer_email: str,
        buyer_name: str,
        alert_class: AlertClass,
        property_view: PropertyView,
    ) -> EmailMessage:
        """Render the alert email for one buyer.

        Raises:
            ValueError: If the buyer email address is invalid
            NotificationTemplateError: If rendering fails
        """
        recipient = validate_recipient(buyer_email)
        rendered = self.template_renderer.render(
            template_for(alert_class), property_view.to_template_context(buyer_name)
        )

        message = EmailMessage()
        message["Subject"] = subject_for(alert_class, property_view.title)
        message["From"] = build_sender_address(self.env_config)
        message["To"] = recipient
        message.set_content(rendered["text_body"])
        message.add_alternative(rendered["html_body"], subtype="html")
        return message

    def send_alert_email(
        self,
        buyer_email: str,
        buyer_name: str,
        alert_class: AlertClass,
        property_view: PropertyView,
    ) -> bool:
        try:
            message = self.build_message(buyer_email, buyer_name, alert_class, property_view)
        except (ValueError, NotificationTemplateError) as e:
            self.logger.error(
                f"Failed to build alert email for property {property_view.property_id}: {e}",
                extra={"event": "notification.build_failed", "error_type": type(e).__name__},
            )
            return False

        try:
            self.smtp_client.send(message)
        except SMTPDeliveryError as e:
            self.logger.warning(
                f"Alert email delivery failed: {e}",
                extra={"event": "notification.send.failure", "error_type": type(e).__name__},
            )
            return False

        self.logger.debug(
            f"Alert email sent to {message['To']}",
            extra={"event": "notification.send.success", "template": template_for(alert_class)},
        )
        return True

    def create_in_app_notification(
        self,
        buyer_id: str,
        kind: str,
        title: str,
        body: str,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        notification = InAppNotification(
            user_id=buyer_id,
            kind=kind,
            title=title,
            body=body,
            link=link,
            metadata=metadata or {},
        )
        try:
            with self._session_scope() as session:
                NotificationRepository(session).create(notification)
        except (PersistenceError, SQLAlchemyError) as e:
            self.logger.warning(
                f"Failed to store in-app notification for buyer {buyer_id}: {e}",
                extra={"event": "notification.in_app_failed", "buyer_id": buyer_id},
            )
            return False
        return True
