"""Unit tests for logging service."""

import json

import structlog

from recordstore.services.logging_service import configure_logging, get_logger, redact_sensitive


class TestRedactSensitive:
    """Tests for redact_sensitive processor."""

    def test_redacts_password_and_hash(self):
        event_dict = {"password": "hunter2", "password_hash": "$2b$", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["password"] == "REDACTED"
        assert result["password_hash"] == "REDACTED"

    def test_redacts_tokens(self):
        event_dict = {"reset_token": "abc", "session_token": "jwt", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["reset_token"] == "REDACTED"
        assert result["session_token"] == "REDACTED"

    def test_redacts_secrets_and_cookies(self):
        event_dict = {"jwt_secret": "s", "cookie": "token=abc", "authorization": "x"}
        result = redact_sensitive(None, None, event_dict)
        assert result == {
            "jwt_secret": "REDACTED",
            "cookie": "REDACTED",
            "authorization": "REDACTED",
        }

    def test_event_name_is_never_redacted(self):
        event_dict = {"event": "session_token_created"}
        result = redact_sensitive(None, None, event_dict)
        assert result["event"] == "session_token_created"

    def test_preserves_non_sensitive_fields(self):
        event_dict = {"correlation_id": "abc-123", "user_id": "u1", "duration_ms": 10}
        result = redact_sensitive(None, None, event_dict)
        assert result == {"correlation_id": "abc-123", "user_id": "u1", "duration_ms": 10}

    def test_case_insensitive_redaction(self):
        event_dict = {"API_KEY": "secret1", "Password": "secret2"}
        result = redact_sensitive(None, None, event_dict)
        assert result["API_KEY"] == "REDACTED"
        assert result["Password"] == "REDACTED"


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_output_is_json_with_redaction(self, capsys):
        configure_logging("INFO")

        structlog.get_logger().info("user_logged_in", user_id="u1", password="hunter2")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "user_logged_in"
        assert record["level"] == "info"
        assert record["password"] == "REDACTED"
        assert "timestamp" in record

    def test_debug_is_filtered_at_info(self, capsys):
        configure_logging("INFO")

        structlog.get_logger().debug("noisy_event")

        assert "noisy_event" not in capsys.readouterr().out

    def test_unknown_level_falls_back_to_info(self, capsys):
        configure_logging("chatty")

        structlog.get_logger().debug("hidden_event")
        structlog.get_logger().info("shown_event")

        out = capsys.readouterr().out
        assert "hidden_event" not in out
        assert "shown_event" in out

    def test_get_logger_binds_name(self, capsys):
        configure_logging("INFO")

        get_logger("accounts").info("named_event")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["logger_name"] == "accounts"

    def test_correlation_id_is_merged_from_context(self, capsys):
        configure_logging("INFO")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id="corr-1")

        structlog.get_logger().info("traced_event")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["correlation_id"] == "corr-1"
        structlog.contextvars.clear_contextvars()
