"""
Print agent exceptions.

Only ``AgentConfigError`` is fatal. Everything else is logged by the
worker that hit it and the current step is retried or abandoned.
"""


class AgentError(Exception):
    """Base class for print agent errors."""


class AgentConfigError(AgentError):
    """The agent configuration file is missing or invalid."""


class AuthenticationError(AgentError):
    """Login failed or a token was rejected by the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OrderFetchError(AgentError):
    """An order could not be fetched after the allowed retries."""


class StreamError(AgentError):
    """The event stream could not be opened or was interrupted."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def requires_login(self) -> bool:
        return self.status_code in (401, 403)


class PrinterError(AgentError):
    """The printer could not be opened or a job failed mid-way."""
