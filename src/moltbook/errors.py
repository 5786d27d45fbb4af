"""Error kinds raised by the Moltbook CLI."""

from __future__ import annotations


class MoltbookError(Exception):
    """Base error with code, message and HTTP status (0 when local)."""

    def __init__(self, code: str, message: str, status_code: int = 0, hint: str = ""):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.hint = hint
        super().__init__(f"{code}: {message}")


class ArgumentError(MoltbookError):
    def __init__(self, message: str):
        super().__init__("VALIDATION", message)


class ConfigMissing(MoltbookError):
    def __init__(self, path):
        super().__init__(
            "CONFIG_MISSING",
            f"Config file not found at: {path}",
            hint="Run 'moltbook init' to set up your configuration.",
        )
        self.path = path


class ConfigCorrupt(MoltbookError):
    def __init__(self, path, reason: str):
        super().__init__("CONFIG_CORRUPT", f"Failed to parse config {path}: {reason}")
        self.path = path


class IoError(MoltbookError):
    def __init__(self, message: str):
        super().__init__("IO", message)


class NetworkError(MoltbookError):
    def __init__(self, message: str, timeout: bool = False):
        super().__init__("TIMEOUT" if timeout else "NETWORK", message)


class ApiError(MoltbookError):
    """Non-2xx response, or a 2xx response reporting ``success: false``."""

    def __init__(self, status_code: int, message: str, hint: str = "", code: str = "API"):
        super().__init__(code, message, status_code, hint)


class RateLimited(ApiError):
    def __init__(self, retry_after: str | None, hint: str = ""):
        self.retry_after = retry_after
        message = f"Rate limited. Retry after {retry_after}" if retry_after else "Rate limited. Wait before retrying"
        super().__init__(429, message, hint, code="RATE_LIMITED")


class VerificationRequired(MoltbookError):
    """Control signal: the server wants a challenge solved before the action counts."""

    def __init__(self, challenge, action: str = "action"):
        self.challenge = challenge
        self.action = action
        super().__init__("VERIFICATION_REQUIRED", f"Verification required to complete your {action}")
