"""
Diamond DAO Exceptions

Base exception classes shared by every governance component. Component-specific
failures subclass these in their own modules.
"""


class DaoException(Exception):
    """Base exception for the governance engine."""
    pass


class InvalidArgument(DaoException):
    """Malformed input: zero address, empty or mismatched arrays, zero fee."""
    pass


class InvalidStartTimestamp(DaoException):
    """The first phase must start strictly in the future."""

    def __init__(self, start_timestamp: int, now: int):
        self.start_timestamp = start_timestamp
        self.now = now
        super().__init__(
            f"Start timestamp {start_timestamp} is not after current time {now}"
        )


class InsufficientFunds(DaoException):
    """Attached value or account balance does not cover the required amount."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Required {required}, available {available}")


class OnlyGovernance(DaoException):
    """Caller is neither the owner nor the governance contract itself."""

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} is not allowed to call governance-only functions")


class ConfigurationError(DaoException):
    """Configuration error."""
    pass
