from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class BrokerConnectError(AppError):
    pass


class BrokerSendError(AppError):
    pass


class MessageParseError(AppError):
    pass


class StoreWriteError(AppError):
    pass


class ForwardTransientError(AppError):
    pass


class ChangeFeedError(AppError):
    pass
