from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ChannelNotConnected(AppError):
    pass


class ValidationError(AppError):
    pass


class NotAuthenticatedError(AppError):
    pass


class UpstreamError(AppError):
    """A REST collaborator call failed."""

    def __init__(self, detail: str = "", status: int | None = None) -> None:
        self.status = status
        super().__init__(detail)


class TransportClosed(AppError):
    """Raised by a transport connection once the peer or the network closed it."""

    def __init__(self, code: int, reason: str = "") -> None:
        self.code = code
        self.reason = reason
        super().__init__(f"closed with code {code}: {reason}" if reason else f"closed with code {code}")
