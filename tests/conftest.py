import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from app import create_app
from executor.delivery_orchestrator import DeliveryOrchestrator
from models.mailer_config import MailerConfig
from senders.base_sender import BaseSender


@pytest.fixture
def mailer_config():
    return MailerConfig(
        sender_email="relay@example.com",
        password="secret",
        smtp_server="smtp.example.com",
        smtp_port="587",
    )

@pytest.fixture
def mock_sender():
    sender = MagicMock(spec=BaseSender)
    sender.send = AsyncMock(return_value=None)
    return sender

@pytest.fixture
def recorded_sleeps():
    return []

@pytest.fixture
def orchestrator(mock_sender, recorded_sleeps):
    async def fake_sleep(delay):
        recorded_sleeps.append(delay)

    return DeliveryOrchestrator(mock_sender, sleep=fake_sleep)

@pytest.fixture
def client(mailer_config, orchestrator):
    return TestClient(create_app(mailer_config, orchestrator=orchestrator))
