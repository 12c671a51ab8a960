"""Errors raised while turning a secrets file into a process environment.

Every failure of a run is one of the classes below. They only carry data;
``vault_error_log_message`` turns them into the single line shown to the user.
"""
from .models import Secret


class VaultError(Exception):
    """Base class for every failure that aborts a run."""


class SecretNotFoundError(VaultError):
    def __init__(self, path: str):
        super().__init__(path)
        self.path = path


class SecretsFileIOError(VaultError):
    def __init__(self, filename: str):
        super().__init__(filename)
        self.filename = filename


class SecretsFileParseError(VaultError):
    def __init__(self, filename: str, reason: str = ""):
        super().__init__(filename, reason)
        self.filename = filename
        self.reason = reason


class KeyNotFoundError(VaultError):
    def __init__(self, secret: Secret):
        super().__init__(secret)
        self.secret = secret


class BadRequestError(VaultError):
    def __init__(self, body: str):
        super().__init__(body)
        self.body = body


class ForbiddenError(VaultError):
    pass


class ServerError(VaultError):
    def __init__(self, body: str):
        super().__init__(body)
        self.body = body


class ServerUnavailableError(VaultError):
    def __init__(self, body: str):
        super().__init__(body)
        self.body = body


class ServerUnreachableError(VaultError):
    def __init__(self, cause: Exception):
        super().__init__(cause)
        self.cause = cause


class InvalidUrlError(VaultError):
    def __init__(self, path: str):
        super().__init__(path)
        self.path = path


class DuplicateVarError(VaultError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


class UnspecifiedError(VaultError):
    def __init__(self, status: int, body: str):
        super().__init__(status, body)
        self.status = status
        self.body = body


def _one_line(text: str) -> str:
    return " ".join(line.strip() for line in str(text).splitlines() if line.strip())


def vault_error_log_message(error: VaultError) -> str:
    """
    Render an error as the one-line message written to stderr.

    Args:
        error: Any VaultError subclass

    Returns:
        Message prefixed with "[ERROR] ", without line breaks
    """
    if isinstance(error, SecretNotFoundError):
        description = f"Secret not found: {error.path}"
    elif isinstance(error, SecretsFileIOError):
        description = f"An I/O error happened while opening: {error.filename}"
    elif isinstance(error, SecretsFileParseError):
        description = f"File {error.filename} could not be parsed"
        if error.reason:
            description += f": {error.reason}"
    elif isinstance(error, KeyNotFoundError):
        description = f"Key {error.secret.key} not found for path {error.secret.path}"
    elif isinstance(error, DuplicateVarError):
        description = f'Found duplicate environment variable "{error.name}"'
    elif isinstance(error, BadRequestError):
        description = f"Made a bad request: {error.body}"
    elif isinstance(error, ForbiddenError):
        description = "Invalid Vault token"
    elif isinstance(error, InvalidUrlError):
        description = f"Secret {error.path} contains characters that are illegal in URLs"
    elif isinstance(error, ServerError):
        description = f"Internal Vault error: {error.body}"
    elif isinstance(error, ServerUnavailableError):
        description = (
            "Vault is unavailable for requests. It can be sealed, "
            f"under maintenance or enduring heavy load: {error.body}"
        )
    elif isinstance(error, ServerUnreachableError):
        cause = error.cause
        description = f"ServerUnreachable error: {type(cause).__name__}: {cause}"
    elif isinstance(error, UnspecifiedError):
        description = f"Received an error that I don't know about ({error.status}): {error.body}"
    else:
        description = f"Unexpected error: {error}"

    return "[ERROR] " + _one_line(description)
