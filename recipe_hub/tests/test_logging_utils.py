"""Tests for service logging utilities."""

import logging

from recipe_hub.services import social_graph_service
from recipe_hub.services.logging_utils import get_service_logger, log_operation


class TestGetServiceLogger:
    """Tests for get_service_logger."""

    def test_dotted_name_uses_last_component(self):
        logger = get_service_logger("recipe_hub.services.review_service")
        assert logger.name == "recipe_hub.services.review_service"

    def test_plain_name(self):
        assert get_service_logger("feed").name == "recipe_hub.services.feed"


class TestLogOperation:
    """Tests for log_operation."""

    def test_message_and_context(self, caplog):
        logger = get_service_logger("unit")
        with caplog.at_level(logging.INFO, logger="recipe_hub.services.unit"):
            log_operation(logger, "toggle_follow", "followed", follower_id=1, followee_id=2)

        record = caplog.records[-1]
        assert record.getMessage() == "toggle_follow: followed"
        assert record.operation == "toggle_follow"
        assert record.outcome == "followed"
        assert record.followee_id == 2
        assert record.levelno == logging.INFO

    def test_level_respected(self, caplog):
        logger = get_service_logger("unit")
        with caplog.at_level(logging.INFO, logger="recipe_hub.services.unit"):
            log_operation(logger, "feed", "success", level=logging.DEBUG)
        assert caplog.records == []

    def test_service_call_is_logged(self, caplog, alice, bob):
        with caplog.at_level(logging.INFO, logger="recipe_hub.services"):
            social_graph_service.toggle_follow(alice, bob.author_id)
        operations = [getattr(r, "operation", None) for r in caplog.records]
        assert "toggle_follow" in operations
