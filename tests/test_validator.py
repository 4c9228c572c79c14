"""Tests for the success/failure contract of structured responses."""

import pytest
from structlog.testing import capture_logs

from iot_sdk.client.validator import error_message, is_successful


class TestIsSuccessful:
    def test_boolean_true_passes(self):
        assert is_successful({"success": True, "data": {}}) is True

    @pytest.mark.parametrize(
        "response",
        [
            {},
            {"success": False},
            {"success": "true"},
            {"success": 1},
            {"success": None},
            None,
            [],
            "success",
        ],
    )
    def test_everything_else_fails_closed(self, response):
        assert is_successful(response) is False

    def test_failure_with_message_is_logged(self):
        with capture_logs() as logs:
            assert is_successful({"success": False, "errorMessage": "device not found"}) is False

        assert logs == [
            {"event": "api_call_failed", "error_message": "device not found", "log_level": "warning"}
        ]

    def test_failure_without_message_logs_nothing(self):
        with capture_logs() as logs:
            is_successful({"success": False})
        assert logs == []


class TestErrorMessage:
    def test_message_from_failed_response(self):
        assert error_message({"success": False, "errorMessage": "bad creds"}) == "bad creds"

    def test_message_when_success_missing(self):
        assert error_message({"errorMessage": "boom"}) == "boom"

    def test_no_message_on_success(self):
        assert error_message({"success": True, "errorMessage": "ignored"}) is None

    @pytest.mark.parametrize("response", [{}, {"success": False}, None, [1]])
    def test_absent_message(self, response):
        assert error_message(response) is None
