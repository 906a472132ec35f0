from __future__ import annotations

import pydantic
import pytest

from sms_relay.config import Settings


@pytest.mark.parametrize("missing", ["BROKER_URL", "STORE_URL", "CLIENT_ENDPOINT"])
def test_required_settings_are_enforced(monkeypatch, missing):
    monkeypatch.delenv(missing, raising=False)

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_database_urls(monkeypatch):
    monkeypatch.setenv("STORE_URL", "postgresql+asyncpg://sms:secret@db:5432/")
    monkeypatch.setenv("STORE_DB", "smsdb")

    s = Settings(_env_file=None)

    assert s.database_url == "postgresql+asyncpg://sms:secret@db:5432/smsdb"
    assert s.listen_dsn == "postgresql://sms:secret@db:5432/smsdb"


def test_reconnect_settings_are_independent(monkeypatch):
    monkeypatch.setenv("INGRESS_BROKER_CONNECT_ATTEMPTS", "7")
    monkeypatch.setenv("CONSUMER_BROKER_CONNECT_DELAY_SECONDS", "3.5")

    s = Settings(_env_file=None)

    assert s.INGRESS_BROKER_CONNECT_ATTEMPTS == 7
    assert s.CONSUMER_BROKER_CONNECT_ATTEMPTS == 60
    assert s.CONSUMER_BROKER_CONNECT_DELAY_SECONDS == 3.5
    assert s.INGRESS_BROKER_CONNECT_DELAY_SECONDS == 2.0
