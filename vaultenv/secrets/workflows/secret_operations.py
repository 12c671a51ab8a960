"""Workflow turning a secrets file into the environment of the launched command."""
import asyncio
import logging
from collections import Counter
from typing import Iterable, Optional, Sequence

import httpx

from ..domains.errors import DuplicateVarError, KeyNotFoundError, VaultError
from ..domains.models import EnvVar, PathData, RunConfig, Secret
from ..domains.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from ..domains.secret_list import read_secret_list
from ..domains.vault_client import VaultClient

logger = logging.getLogger(__name__)


def unique_paths(secrets: Iterable[Secret]) -> list[str]:
    """Distinct paths referenced by the secrets, in first-seen order."""
    return list(dict.fromkeys(secret.path for secret in secrets))


async def request_secrets(
    config: RunConfig,
    secrets: Sequence[Secret],
    http_client: Optional[httpx.AsyncClient] = None,
    retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> dict[str, PathData]:
    """
    Fetch the data of every path referenced by the secrets.

    Each path is requested once, even if several keys of it are needed,
    and all paths are requested concurrently.

    Args:
        config: Connection settings
        secrets: Parsed secrets
        http_client: Client to send requests with (a new one is created if not provided)
        retry_policy: Policy applied to each path independently

    Returns:
        Mapping of every unique path to its data

    Raises:
        VaultError: The failure of one of the paths; the remaining requests are cancelled
    """
    paths = unique_paths(secrets)
    logger.debug(f"Requesting {len(paths)} unique path(s) for {len(secrets)} secret(s)")

    async with VaultClient(config, http_client=http_client) as vault:
        try:
            async with asyncio.TaskGroup() as group:
                tasks = {
                    path: group.create_task(
                        retry_policy.run(lambda path=path: vault.read_secret(path), label=path)
                    )
                    for path in paths
                }
        except ExceptionGroup as eg:
            # Prefer a classified failure, otherwise surface the first raw one
            first = next((e for e in eg.exceptions if isinstance(e, VaultError)), eg.exceptions[0])
            raise first from None

    return {path: task.result() for path, task in tasks.items()}


def lookup_secrets(secrets: Iterable[Secret], vault_data: dict[str, PathData]) -> list[EnvVar]:
    """
    Look for the requested keys in the secret data that has been previously fetched.

    Raises:
        KeyNotFoundError: For the first secret whose key is missing
    """
    env = []
    for secret in secrets:
        path_data = vault_data.get(secret.path, {})
        if secret.key not in path_data:
            raise KeyNotFoundError(secret)
        env.append((secret.var_name, path_data[secret.key]))
    return env


def build_env(secret_env: list[EnvVar], local_env: list[EnvVar], inherit_env: bool) -> list[EnvVar]:
    if not inherit_env:
        return list(secret_env)
    return list(secret_env) + list(local_env)


def check_no_duplicates(env: list[EnvVar]) -> list[EnvVar]:
    """
    Reject environments that define a variable twice.

    Returns:
        The environment, unchanged

    Raises:
        DuplicateVarError: Naming the first variable that occurs again later on
    """
    counts = Counter(name for name, _ in env)
    for name, _ in env:
        if counts[name] > 1:
            raise DuplicateVarError(name)
    return env


async def vault_env(
    config: RunConfig,
    secrets_file: str,
    local_env: list[EnvVar],
    http_client: Optional[httpx.AsyncClient] = None,
    retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> list[EnvVar]:
    """
    Build the complete environment for the command to launch.

    Args:
        config: Connection settings
        secrets_file: File listing the secrets to inject
        local_env: Parent environment, appended when inheritance is enabled
        http_client: Optional client override
        retry_policy: Optional retry policy override

    Returns:
        Secret variables in file order, followed by the parent environment if inherited

    Raises:
        VaultError: On any failure; no partial environment is ever returned
    """
    secrets = read_secret_list(secrets_file)
    vault_data = await request_secrets(config, secrets, http_client=http_client, retry_policy=retry_policy)
    secret_env = lookup_secrets(secrets, vault_data)
    env = check_no_duplicates(build_env(secret_env, local_env, config.inherit_env))
    logger.debug(f"Built environment with {len(secret_env)} secret(s) and {len(env)} variable(s) in total")
    return env
