from app import DELIVERY_FAILED_MESSAGE, SUCCESS_MESSAGE, create_app, decode_email_request
from errors import DecodeError, TransportError
from models.mailer_config import MailerConfig
from senders.smtp_sender import SMTPSender
import logging
import pytest


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_send_email_success(client, mock_sender, mailer_config):
    response = client.post(
        "/send-email",
        json={"subject": "Hi", "message": "Body", "recipients": ["a@x.com", "b@y.com"]},
    )

    assert response.status_code == 200
    assert response.text == SUCCESS_MESSAGE
    assert response.headers["content-type"].startswith("text/plain")

    mock_sender.send.assert_awaited_once_with(
        "smtp.example.com:587",
        mailer_config.credentials,
        "relay@example.com",
        ["a@x.com", "b@y.com"],
        b"To: a@x.com,b@y.com\r\nSubject: Hi\r\n\r\nBody\r\n",
    )

def test_send_email_invalid_recipient(client, mock_sender):
    response = client.post(
        "/send-email",
        json={"recipients": ["bad"], "subject": "s", "message": "m"},
    )

    assert response.status_code == 400
    assert response.text == "Recipient email address 'bad' is not valid"
    mock_sender.send.assert_not_awaited()

@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "PURGE"])
def test_send_email_rejects_non_post(client, mock_sender, method):
    response = client.request(method, "/send-email")

    assert response.status_code == 405
    assert response.text == "Only POST Method is allowed."
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["allow"] == "POST"
    mock_sender.send.assert_not_awaited()

def test_send_email_malformed_json(client, mock_sender):
    response = client.post(
        "/send-email",
        content=b'{"subject": "s", "recipients": [',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "Expecting" in response.text
    mock_sender.send.assert_not_awaited()

def test_send_email_wrong_field_type(client, mock_sender):
    response = client.post("/send-email", json={"subject": 42, "recipients": ["a@x.com"]})

    assert response.status_code == 400
    assert "subject" in response.text
    mock_sender.send.assert_not_awaited()

def test_send_email_retries_exhausted(client, mock_sender, recorded_sleeps):
    mock_sender.send.side_effect = TransportError("535 5.7.8 authentication failed")

    response = client.post(
        "/send-email",
        json={"subject": "s", "message": "m", "recipients": ["a@x.com"]},
    )

    assert response.status_code == 500
    assert response.text == DELIVERY_FAILED_MESSAGE
    # Relay detail stays in the logs
    assert "535" not in response.text
    assert mock_sender.send.await_count == 3
    assert recorded_sleeps == [1.0, 2.0]

def test_send_email_recovers_after_transient_failure(client, mock_sender, recorded_sleeps):
    mock_sender.send.side_effect = [TransportError("Connection timeout"), None]

    response = client.post(
        "/send-email",
        json={"subject": "s", "message": "m", "recipients": ["a@x.com"]},
    )

    assert response.status_code == 200
    assert mock_sender.send.await_count == 2
    assert recorded_sleeps == [1.0]

def test_decode_email_request_defaults_missing_fields():
    request = decode_email_request(b'{"recipients": ["a@x.com"]}')
    assert request.subject == ""
    assert request.message == ""
    assert request.recipients == ["a@x.com"]

def test_decode_email_request_rejects_empty_body():
    with pytest.raises(DecodeError):
        decode_email_request(b"")

def test_create_app_builds_smtp_sender_from_config():
    config = MailerConfig(
        sender_email="relay@example.com",
        password="secret",
        smtp_server="smtp.example.com",
        smtp_port="25",
        smtp_timeout=7.5,
    )
    app = create_app(config)

    sender = app.state.orchestrator.sender
    assert isinstance(sender, SMTPSender)
    assert sender.timeout == 7.5
    assert app.state.config is config

def test_other_routes_keep_default_405(client):
    response = client.post("/health")

    assert response.status_code == 405
    assert response.json() == {"detail": "Method Not Allowed"}

def test_exhausted_delivery_logs_one_error(client, mock_sender, caplog):
    mock_sender.send.side_effect = TransportError("relay down")
    caplog.set_level(logging.INFO, logger="mail_relay")

    response = client.post(
        "/send-email",
        json={"subject": "s", "message": "m", "recipients": ["a@x.com"]},
    )

    assert response.status_code == 500
    errors = [r for r in caplog.records if r.name == "mail_relay" and r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "relay down" in errors[0].getMessage()
