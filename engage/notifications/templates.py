"""Template rendering for in-app notifications using Jinja2.

This module wraps Jinja2 template rendering with caching and strict
undefined checking to catch template errors early.
"""

from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from engage.logging import get_logger

from .models import NotificationTemplateError

logger = get_logger(__name__, component="notification")


class TemplateRenderer:
    """Renders in-app notification text using Jinja2.

    Provides the title and message of a need-match notification from
    template files in the engage.notifications templates directory.
    Notifications are plain text, so autoescaping is off.

    Templates are cached for reuse across multiple invocations.
    """

    def __init__(
        self,
        template_dir: str = "templates",
        title_template: str = "need_match_title.j2",
        message_template: str = "need_match_message.j2",
    ):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within the engage.notifications package
            title_template: Filename of the notification title template
            message_template: Filename of the notification message template
        """
        self.title_template_name = title_template
        self.message_template_name = message_template

        self.env = Environment(
            loader=PackageLoader("engage.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,  # Raise errors for missing variables
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the notification templates with the provided context.

        Args:
            context: Dictionary of template variables (see build_notification_payload)

        Returns:
            Dictionary containing:
            - title: Rendered title (single line)
            - message: Rendered message body

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            title_template = self.env.get_template(self.title_template_name)
            message_template = self.env.get_template(self.message_template_name)

            title = title_template.render(context).strip().replace("\n", " ")
            message = message_template.render(context).strip()

            logger.debug(f"Rendered templates for need: {context.get('need_id', 'unknown')}")

            return {"title": title, "message": message}

        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
