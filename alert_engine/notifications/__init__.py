"""Alert delivery: dispatcher, email content and the SMTP notifier."""

from .models import (
    DispatchFailure,
    DispatchOutcome,
    NotificationError,
    NotificationTemplateError,
    SMTPDeliveryError,
)
from .notifier import SmtpNotifier
from .payloads import PropertyView, build_property_view, subject_for, template_for
from .service import AlertDispatcher
from .smtp_client import SMTPClient
from .templates import TemplateRenderer

__all__ = [
    "AlertDispatcher",
    "SmtpNotifier",
    "SMTPClient",
    "TemplateRenderer",
    "PropertyView",
    "build_property_view",
    "template_for",
    "subject_for",
    "DispatchOutcome",
    "DispatchFailure",
    "NotificationError",
    "NotificationTemplateError",
    "SMTPDeliveryError",
]
