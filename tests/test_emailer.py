import smtplib

import pytest

import emailer


class RecordingSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, message):
        RecordingSMTP.sent.append((sender, recipients, message))


def test_credentials_email_contains_login_details(monkeypatch):
    RecordingSMTP.sent = []
    monkeypatch.setattr(emailer.smtplib, "SMTP", RecordingSMTP)
    emailer.send_credentials_email("ops@acme.io", "Acme", "s3cretPass12", "https://app.example.com/login")

    sender, recipients, message = RecordingSMTP.sent[0]
    assert recipients == ["ops@acme.io"]
    assert "[Acme] Your login credentials" in message
    assert "s3cretPass12" in message


def test_transport_failure_raises_email_error(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "try later")

    monkeypatch.setattr(emailer.smtplib, "SMTP", refuse)
    with pytest.raises(emailer.EmailError):
        emailer.send_credentials_email("ops@acme.io", "Acme", "pw")
