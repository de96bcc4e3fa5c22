"""Unit tests for notification template rendering."""

import pytest

from engage.notifications.models import NotificationTemplateError
from engage.notifications.templates import TemplateRenderer


@pytest.fixture
def context():
    return {
        "need_id": "need-42",
        "need_title": "Meals for the Johnson family",
        "need_description": "Bring dinner on Tuesday",
        "match_tags": "Cooking",
        "time_preference": "Nights",
        "availability_score": 3,
        "urgency": "normal",
    }


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    def test_render_title_and_message(self, context):
        rendered = TemplateRenderer().render(context)

        assert rendered["title"] == "New serving opportunity!"
        assert rendered["message"] == (
            'There\'s a new "Meals for the Johnson family" opportunity '
            "that matches your gifts and availability."
        )

    def test_no_html_escaping(self, context):
        context["need_title"] = "Food & Fellowship <Sunday>"

        rendered = TemplateRenderer().render(context)

        assert '"Food & Fellowship <Sunday>"' in rendered["message"]

    def test_missing_variable_raises(self):
        with pytest.raises(NotificationTemplateError) as exc_info:
            TemplateRenderer().render({"need_id": "need-42"})

        assert "need_title" in str(exc_info.value)

    def test_missing_template_raises(self, context):
        renderer = TemplateRenderer(message_template="does_not_exist.j2")

        with pytest.raises(NotificationTemplateError):
            renderer.render(context)

    def test_title_is_single_line(self, context):
        renderer = TemplateRenderer(title_template="need_match_message.j2")
        context["need_title"] = "Line one\nLine two"

        rendered = renderer.render(context)

        assert "\n" not in rendered["title"]
