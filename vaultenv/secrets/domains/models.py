"""Domain models for secret injection."""
from dataclasses import dataclass, field
from typing import Optional

# (name, value) pair handed to the launched command
EnvVar = tuple[str, str]

# Key/value data decoded from a single Vault path
PathData = dict[str, str]

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8200


@dataclass(frozen=True)
class Secret:
    """A single line of the secrets file: which key of which path, exposed under which name."""
    path: str
    key: str
    var_name: str


@dataclass(frozen=True)
class RunConfig:
    """Connection settings for one run, fixed at startup."""
    token: str = field(repr=False)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_tls: bool = True
    inherit_env: bool = True
    timeout: Optional[float] = None  # seconds per request attempt, None waits forever

    @property
    def scheme(self) -> str:
        return "https" if self.connect_tls else "http"
