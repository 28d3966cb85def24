class SfdashError(Exception):
    """Base class for errors raised by sfdash itself."""


class MissingCredentialsError(SfdashError, ValueError):
    """Raised when login() gets neither username/password nor session_id/server_url."""

    def __init__(self, message: str = "Must provide username/password or session_id/server_url."):
        super().__init__(message)


class ApiError(SfdashError, RuntimeError):
    """Raised when a SOAP result reports success=false with an errors structure."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")
