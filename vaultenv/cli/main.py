"""CLI entrypoint for vaultenv."""
import os
import sys
import asyncio
import argparse
import logging
from typing import Mapping, NoReturn, Optional, Sequence

from vaultenv.secrets.domains.config_loader import ConfigError, load_config
from vaultenv.secrets.domains.errors import VaultError, vault_error_log_message
from vaultenv.secrets.domains.models import DEFAULT_HOST, DEFAULT_PORT, EnvVar, RunConfig
from vaultenv.secrets.workflows.secret_operations import vault_env

from .validators import validate_port, validate_secrets_file, validate_timeout, validate_token

VERSION = "0.1.0"

TOKEN_ENV_VAR = "VAULT_TOKEN"

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _first_set(*values):
    """Return the first value that is not None."""
    return next((value for value in values if value is not None), None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultenv",
        description="vaultenv - run programs with secrets from HashiCorp Vault",
        epilog="""
Secrets file format (one secret per line):
  [NAME=]PATH#KEY

  DB_PASS=db/creds#password   exposes key 'password' of path 'db/creds' as DB_PASS
  api/creds#token             exposes key 'token' of path 'api/creds' as API_CREDS_TOKEN

Exit codes:
  1 - Runtime error (secret not found, Vault unreachable, duplicate variable, etc.)
  2 - Usage error (invalid arguments, missing token, invalid config file, etc.)
  On success the process is replaced by CMD.

Environment variables:
  VAULT_TOKEN     - token used when --token is not given
  VAULTENV_CONFIG - config file used when --config is not given

Configuration:
  Default location: ~/.config/vaultenv/config.yml (optional)
  Settings: host, port, secrets_file, connect_tls, inherit_env, timeout
  Command line flags take precedence over the config file.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        metavar="HOST",
        help=f"Vault host, either an IP address or DNS name, defaults to {DEFAULT_HOST}"
    )
    parser.add_argument(
        "--port",
        metavar="PORT",
        type=int,
        help=f"Vault port, defaults to {DEFAULT_PORT}"
    )
    parser.add_argument(
        "--token",
        metavar="TOKEN",
        help=f"token to authenticate to Vault with, defaults to the value of the {TOKEN_ENV_VAR} environment variable if present"
    )
    parser.add_argument(
        "--secrets-file",
        metavar="FILENAME",
        help="config file specifying which secrets to request"
    )
    parser.add_argument(
        "--no-connect-tls",
        dest="connect_tls",
        action="store_const",
        const=False,
        help="don't use TLS when connecting to Vault (default: use TLS)"
    )
    parser.add_argument(
        "--no-inherit-env",
        dest="inherit_env",
        action="store_const",
        const=False,
        help="don't merge the parent environment with the secrets file"
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        help="give up on a single request attempt after SECONDS (default: wait indefinitely)"
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML config file with default settings"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="log requests and retries to stderr (secret values are never logged)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vaultenv {VERSION}"
    )
    parser.add_argument(
        "cmd",
        metavar="CMD",
        help="command to run after fetching secrets"
    )
    parser.add_argument(
        "args",
        metavar="ARGS",
        nargs=argparse.REMAINDER,
        help="arguments to pass to CMD, defaults to nothing"
    )
    return parser


def build_run_config(args: argparse.Namespace, environ: Mapping[str, str]) -> tuple[RunConfig, str]:
    """
    Merge command line flags, config file and environment into a RunConfig.

    Precedence: command line, then config file, then built-in defaults.

    Returns:
        Tuple of (RunConfig, secrets file path)

    Raises:
        ConfigError: If the config file is invalid
        SystemExit with code 2 on invalid or missing settings
    """
    file_config = load_config(args.config)

    token = args.token or environ.get(TOKEN_ENV_VAR)
    validate_token(token)

    secrets_file = _first_set(args.secrets_file, file_config.get("secrets_file"))
    validate_secrets_file(secrets_file)

    port = _first_set(args.port, file_config.get("port"), DEFAULT_PORT)
    validate_port(port)

    timeout = _first_set(args.timeout, file_config.get("timeout"))
    validate_timeout(timeout)

    config = RunConfig(
        token=token,
        host=_first_set(args.host, file_config.get("host"), DEFAULT_HOST),
        port=port,
        connect_tls=_first_set(args.connect_tls, file_config.get("connect_tls"), True),
        inherit_env=_first_set(args.inherit_env, file_config.get("inherit_env"), True),
        timeout=timeout,
    )
    logger.debug(f"Using {config}")
    return config, secrets_file


def run_command(command: str, args: Sequence[str], env: list[EnvVar]) -> NoReturn:
    """Replace the current process with `command`, using exactly `env` as its environment."""
    # execve does not search PATH and does not return on success
    os.execve(command, [command, *args], dict(env))


def main(argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None):
    """Main CLI entrypoint.

    Exit codes:
        1 - Runtime errors (secret not found, Vault unreachable, launch failure, etc.)
        2 - Usage errors (invalid arguments, missing token, invalid config, etc.)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if environ is None:
        environ = os.environ

    try:
        config, secrets_file = build_run_config(args, environ)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        local_env = list(environ.items())
        new_env = asyncio.run(vault_env(config, secrets_file, local_env))
        run_command(args.cmd, args.args, new_env)
    except VaultError as e:
        print(vault_error_log_message(e), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
