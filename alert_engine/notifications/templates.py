"""Template rendering for alert emails using Jinja2.

Each alert template name maps to two files in the email_templates package
directory: ``<name>.html.j2`` and ``<name>.txt.j2``. Subjects are built in
``payloads.subject_for``.
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders alert email templates.

    Only the HTML bodies are autoescaped. Undefined variables raise instead
    of rendering blank, so a template and its context cannot drift apart
    silently. Loaded templates are cached by the Jinja2 environment.
    """

    def __init__(self, package: str = "alert_engine.notifications", template_dir: str = "email_templates"):
        self.env = Environment(
            loader=PackageLoader(package, template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the HTML and text bodies for one template.

        Args:
            template_name: Alert template name, e.g. "propertyAlert"
            context: Template variables

        Returns:
            Dict with "html_body" and "text_body"

        Raises:
            NotificationTemplateError: If a template is missing or fails to render
        """
        try:
            html_body = self.env.get_template(f"{template_name}.html.j2").render(context)
            text_body = self.env.get_template(f"{template_name}.txt.j2").render(context)
        except TemplateError as e:
            error_msg = f"Rendering template '{template_name}' failed: {e}"
            logger.error(error_msg)
            raise NotificationTemplateError(error_msg) from e

        return {
            "html_body": html_body,
            "text_body": text_body,
        }
