"""
Tests for the application context and error formatting
"""

import logging

from handoff_updater.core.exceptions import BackupError, NoAssetForPlatform, UpdaterError
from handoff_updater.core.lifecycle import ApplicationContext
from handoff_updater.core.logging_setup import configure_logging


class TestApplicationContext:
    """Test ordered close callbacks"""

    def test_closes_in_reverse_order(self):
        """Test that closers run in reverse registration order"""
        context = ApplicationContext()
        closed = []
        context.register("database", lambda: closed.append("database"))
        context.register("http", lambda: closed.append("http"))

        context.close()

        assert closed == ["http", "database"]
        assert context.closed

    def test_close_is_idempotent(self):
        """Test that a second close does nothing"""
        context = ApplicationContext()
        calls = []
        context.register("database", lambda: calls.append(1))

        context.close()
        context.close()

        assert calls == [1]

    def test_failing_closer_does_not_stop_others(self, caplog):
        """Test that a failing closer is logged and skipped"""
        context = ApplicationContext()
        closed = []

        def broken():
            raise OSError("locked")

        context.register("database", lambda: closed.append("database"))
        context.register("broken", broken)

        with caplog.at_level(logging.WARNING):
            context.close()

        assert closed == ["database"]
        assert "broken close warning: locked" in caplog.text


class TestUpdaterError:
    """Tests for UpdaterError formatting"""

    def test_str_includes_component_and_hint(self):
        """Test error formatting with component and recovery hint"""
        error = UpdaterError("Something failed", component="Feed", recovery_hint="Retry later")
        assert str(error) == "[Feed] Something failed\nRecovery: Retry later"

    def test_plain_message(self):
        """Test error formatting without extras"""
        assert str(UpdaterError("Something failed")) == "Something failed"

    def test_subclasses_carry_details(self):
        """Test attributes and default hints of error subclasses"""
        error = NoAssetForPlatform("No asset", "linux")
        assert error.platform_hint == "linux"
        assert error.message == "No asset"
        assert "Check free disk space" in str(BackupError("Disk full"))


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_quiets_http_client(self):
        """Test that HTTP client loggers are set to WARNING"""
        configure_logging("DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
