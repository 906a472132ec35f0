"""Entrypoint: python -m sms_relay"""
from __future__ import annotations

import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG


def _log_config() -> dict[str, Any]:
    """uvicorn's logging plus a handler for our loggers that prints the request id."""
    config = copy.deepcopy(LOGGING_CONFIG)
    config.setdefault("filters", {})["correlation_id"] = {
        "()": "sms_relay.api.middleware.correlation_id.CorrelationIdFilter",
    }
    config["formatters"]["app"] = {
        "format": "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s",
    }
    config["handlers"]["app"] = {
        "class": "logging.StreamHandler",
        "formatter": "app",
        "filters": ["correlation_id"],
        "stream": "ext://sys.stderr",
    }
    config["loggers"]["sms_relay"] = {
        "handlers": ["app"],
        "level": "INFO",
        "propagate": False,
    }
    return config


def main() -> None:
    uvicorn.run(
        "sms_relay.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=3000,
        log_config=_log_config(),
    )


if __name__ == "__main__":
    main()
