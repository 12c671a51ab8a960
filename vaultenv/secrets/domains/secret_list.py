"""Parser for the secrets file.

Each line has the form ``[NAME=]PATH#KEY``:

    DB_PASS=db/creds#password    -> DB_PASS
    api/creds#token              -> API_CREDS_TOKEN

There is no comment or blank-line syntax; any malformed line rejects the
whole file.
"""
import logging

from .errors import SecretsFileIOError, SecretsFileParseError
from .models import Secret

logger = logging.getLogger(__name__)


def var_name_from_key(path: str, key: str) -> str:
    """Derive the environment variable name for a secret without an explicit name."""
    return f"{path}_{key}".replace("/", "_").replace("-", "_").upper()


def parse_secret(line: str) -> Secret:
    """
    Parse one line of the secrets file.

    Args:
        line: Line in ``[NAME=]PATH#KEY`` form

    Returns:
        Parsed Secret

    Raises:
        ValueError: If the line has no '#' separator or an empty path or key
    """
    name, sep, path_and_key = line.partition("=")
    if not sep:
        name, path_and_key = "", line

    path, sep, key = path_and_key.partition("#")
    if not sep:
        raise ValueError(f"Secret path '{path_and_key}' does not contain '#' separator.")
    if not path:
        raise ValueError(f"Secret '{path_and_key}' has an empty path.")
    if not key:
        raise ValueError(f"Secret '{path_and_key}' has an empty key.")

    return Secret(
        path=path,
        key=key,
        var_name=name if name else var_name_from_key(path, key),
    )


def read_secret_list(filename: str) -> list[Secret]:
    """
    Read and parse every line of a secrets file.

    Args:
        filename: Path to the secrets file

    Returns:
        Secrets in file order

    Raises:
        SecretsFileIOError: If the file cannot be read
        SecretsFileParseError: On the first malformed line
    """
    try:
        with open(filename, "r") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Failed to read secrets file {filename}: {e}")
        raise SecretsFileIOError(filename) from e

    secrets = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        try:
            secrets.append(parse_secret(line))
        except ValueError as e:
            raise SecretsFileParseError(filename, f"line {lineno}: {e}") from e

    logger.debug(f"Read {len(secrets)} secret(s) from {filename}")
    return secrets
