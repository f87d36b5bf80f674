"""
Fail2Ban Redux exceptions.
"""


class Fail2BanError(Exception):
    """Base exception for fail2ban-redux."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(Fail2BanError):
    """Raised when configuration values are invalid."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class RequestTerminated(Fail2BanError):
    """
    Raised after a hard-block event has been logged.

    Host integrations must end the request with ``status_code`` and an
    empty body. This is a deliberate block, not a failure.
    """

    def __init__(self, reason: str, status_code: int = 403):
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Request terminated by '{reason}' with status {status_code}")
