"""Input validation for CLI arguments."""
import math
import sys
from typing import Optional


def validate_token(token: Optional[str]) -> None:
    """
    Validate a Vault token was provided.

    Args:
        token: Token from --token or the VAULT_TOKEN environment variable

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not token:
        print("Error: No Vault token provided", file=sys.stderr)
        print("\nPass one with --token or set the VAULT_TOKEN environment variable.", file=sys.stderr)
        sys.exit(2)

    # HTTP header values must be ASCII
    if not token.isascii():
        print("Error: Vault token contains non-ASCII characters", file=sys.stderr)
        sys.exit(2)


def validate_port(port: int) -> None:
    """
    Validate port is a usable TCP port.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not 0 < port < 65536:
        print(f"Error: Invalid port {port}", file=sys.stderr)
        print("\nPort must be between 1 and 65535.", file=sys.stderr)
        sys.exit(2)


def validate_timeout(timeout: Optional[float]) -> None:
    """Validate timeout is positive when given (None means no timeout)."""
    if timeout is not None and not (math.isfinite(timeout) and timeout > 0):
        print(f"Error: Invalid timeout {timeout}", file=sys.stderr)
        print("\nTimeout must be a positive number of seconds.", file=sys.stderr)
        sys.exit(2)


def validate_secrets_file(secrets_file: Optional[str]) -> None:
    """
    Validate a secrets file was named on the command line or in the config file.

    Existence is not checked here; an unreadable file is reported as a runtime error.
    """
    if not secrets_file:
        print("Error: No secrets file provided", file=sys.stderr)
        print("\nPass one with --secrets-file FILENAME or set 'secrets_file' in the config file.", file=sys.stderr)
        print("\nEach line of the file has the form [NAME=]PATH#KEY, for example:", file=sys.stderr)
        print("  DB_PASS=db/creds#password", file=sys.stderr)
        print("  api/creds#token", file=sys.stderr)
        sys.exit(2)
