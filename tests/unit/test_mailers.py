"""
Unit tests for the mail adapters.

Tests verify the console mailer implements the Mailer protocol and logs
OTP emails in the expected format, and that the SMTP mailer picks the
right transport for the configured port.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from account_engine.adapters.smtp import ConsoleMailer, SmtpMailer, get_mailer, render_otp_email
from account_engine.config.settings import Settings


class TestConsoleMailerProtocol:
    """Tests for Mailer protocol compliance."""

    def test_implements_mailer_protocol(self) -> None:
        from account_engine.domain.ports import Mailer

        mailer = ConsoleMailer()
        assert callable(mailer.send_otp)

        def accepts_mailer(m: Mailer) -> None:
            pass

        accepts_mailer(mailer)

    def test_no_explicit_inheritance(self) -> None:
        """ConsoleMailer uses structural subtyping, not inheritance."""
        assert ConsoleMailer.__bases__ == (object,)


class TestConsoleMailer:
    """Tests for ConsoleMailer.send_otp()."""

    def test_logs_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            ConsoleMailer().send_otp("a@x.io", "Alice", "012345", "EMAIL_VERIFICATION")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.INFO

    def test_log_format(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            ConsoleMailer().send_otp("a@x.io", "Alice", "012345", "EMAIL_VERIFICATION")

        assert "[MAILER]" in caplog.text
        assert "To: a@x.io" in caplog.text
        assert "Subject: Verify your email address" in caplog.text
        assert "OTP: 012345" in caplog.text

    def test_reset_subject(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            ConsoleMailer().send_otp("a@x.io", "Alice", "999999", "PASSWORD_RESET")

        assert "Subject: Reset your password" in caplog.text

    def test_concurrent_logging_is_thread_safe(self, caplog: pytest.LogCaptureFixture) -> None:
        """Multiple concurrent calls don't corrupt log output."""
        mailer = ConsoleMailer()

        with caplog.at_level(logging.INFO), ThreadPoolExecutor(max_workers=5) as executor:
            futures = [
                executor.submit(
                    mailer.send_otp, f"user{i}@x.io", "User", f"{i:06d}", "EMAIL_VERIFICATION"
                )
                for i in range(10)
            ]
            for f in futures:
                f.result()

        assert len(caplog.records) == 10
        for record in caplog.records:
            assert "[MAILER]" in record.message
            assert "OTP:" in record.message


class TestContent:
    def test_body_contains_code_and_name(self) -> None:
        content = render_otp_email("Alice", "012345", "EMAIL_VERIFICATION")

        assert "Hi Alice" in content.body
        assert "012345" in content.body
        assert "10 minutes" in content.body

    def test_reset_body(self) -> None:
        content = render_otp_email("Alice", "012345", "PASSWORD_RESET")

        assert content.subject == "Reset your password"
        assert "reset your password" in content.body


class TestSmtpMailer:
    def make_mailer(self, port: int) -> SmtpMailer:
        return SmtpMailer(
            host="smtp.example.com",
            port=port,
            username="user",
            password="secret",
            from_address="noreply@example.com",
            from_name="Accounts",
        )

    def test_port_465_uses_implicit_tls(self) -> None:
        with patch("account_engine.adapters.smtp.smtp.smtplib.SMTP_SSL") as smtp_ssl:
            server = smtp_ssl.return_value.__enter__.return_value

            self.make_mailer(465).send_otp("a@x.io", "Alice", "012345", "EMAIL_VERIFICATION")

        server.login.assert_called_once_with("user", "secret")
        from_address, recipients, message = server.sendmail.call_args.args
        assert from_address == "noreply@example.com"
        assert recipients == ["a@x.io"]
        assert "Subject: Verify your email address" in message

    def test_other_ports_use_starttls(self) -> None:
        with patch("account_engine.adapters.smtp.smtp.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            server.has_extn.return_value = True

            self.make_mailer(587).send_otp("a@x.io", "Alice", "012345", "PASSWORD_RESET")

        server.starttls.assert_called_once()
        server.sendmail.assert_called_once()

    def test_delivery_errors_propagate(self) -> None:
        """The worker retries on SMTP errors, so the mailer must not swallow them."""
        with patch("account_engine.adapters.smtp.smtp.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            server.has_extn.return_value = False
            server.sendmail.side_effect = OSError("connection reset")

            with pytest.raises(OSError):
                self.make_mailer(25).send_otp("a@x.io", "Alice", "012345", "PASSWORD_RESET")


class TestGetMailer:
    def test_console_by_default(self) -> None:
        assert isinstance(get_mailer(Settings()), ConsoleMailer)

    def test_smtp_driver(self) -> None:
        settings = Settings(mail_driver="smtp", mail_host="smtp.example.com")

        assert isinstance(get_mailer(settings), SmtpMailer)
