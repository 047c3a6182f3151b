import logging

from labops import notify
from labops.config import Settings


def test_testing_mode_uses_outbox():
    assert notify.send_email(Settings(testing=True), "a@example.com", "Hi", "Body")
    assert notify.EMAIL_OUTBOX[-1] == ("a@example.com", "Hi", "Body")


def test_without_smtp_server_message_is_dropped(caplog):
    caplog.set_level(logging.INFO, logger="labops.notify")
    sent = notify.send_email(Settings(testing=False, smtp_server=None), "a@example.com", "Hi", "Body")
    assert sent is False
    assert "SMTP not configured" in caplog.text


def test_smtp_failures_are_swallowed(monkeypatch):
    class Boom:
        def __init__(self, *args, **kwargs):
            raise OSError("connection refused")

    monkeypatch.setattr(notify.smtplib, "SMTP", Boom)
    sent = notify.send_email(Settings(testing=False, smtp_server="localhost"), "a@example.com", "Hi", "Body")
    assert sent is False
