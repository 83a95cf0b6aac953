"""
Ambient login identity lookup.

The application master falls back to the identity it is running as when no
principal is configured. Two sources are supported:

    process      - the operating system login user (getpass)
    ticket_cache - the default principal of the Kerberos credential cache (klist)

Both return None when no identity can be found and raise OSError when the
lookup itself fails.
"""

import getpass
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from core.logging.setup import get_logger

logger = get_logger(__name__)

IDENTITY_SOURCES = ("process", "ticket_cache")

# "Default principal: app/host.example.com@EXAMPLE.COM"
_DEFAULT_PRINCIPAL_PATTERN = re.compile(r"^\s*Default principal:\s*(\S+)\s*$", re.MULTILINE)


def get_components(principal: str) -> list[str]:
    """
    Split a principal into (short name, instance, realm) components.

    >>> get_components("app/host.example.com@EXAMPLE.COM")
    ['app', 'host.example.com', 'EXAMPLE.COM']
    >>> get_components("app@EXAMPLE.COM")
    ['app', 'EXAMPLE.COM']
    """
    return re.split(r"[/@]", principal)


@dataclass(frozen=True)
class LoginIdentity:
    """A login identity as reported by the environment."""

    user_name: str

    @property
    def short_user_name(self) -> str:
        """User name without instance and realm."""
        return get_components(self.user_name)[0]


class ProcessLoginIdentityProvider:
    """Reports the operating system user the process runs as."""

    def get_login_identity(self) -> Optional[LoginIdentity]:
        try:
            user_name = getpass.getuser()
        except KeyError as e:
            # pwd lookup miss on interpreters that predate the OSError contract
            raise OSError(f"Unable to look up login user: {e}") from e
        if not user_name:
            return None
        return LoginIdentity(user_name)


class TicketCacheIdentityProvider:
    """
    Reports the default principal of the Kerberos credential cache.

    Runs `klist`; an empty or missing cache yields no identity.
    """

    def __init__(self, klist_path: str = "klist", ccache: Optional[str] = None):
        self.klist_path = klist_path
        self.ccache = ccache

    def _command(self) -> list[str]:
        executable = shutil.which(self.klist_path)
        if executable is None:
            raise FileNotFoundError(f"Kerberos klist binary not found: {self.klist_path}")
        cmd = [executable]
        if self.ccache:
            cmd.extend(["-c", self.ccache])
        return cmd

    def get_login_identity(self) -> Optional[LoginIdentity]:
        cmd = self._command()
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            logger.debug(
                "No Kerberos credential cache available",
                extra={"identity_source": "ticket_cache", "error_message": result.stderr.strip()},
            )
            return None

        match = _DEFAULT_PRINCIPAL_PATTERN.search(result.stdout)
        if not match:
            return None
        return LoginIdentity(match.group(1))


def create_identity_provider(source: str = "process", **kwargs):
    """
    Build the identity provider for a configured source name.

    Args:
        source: One of IDENTITY_SOURCES
        **kwargs: Passed to the provider constructor

    Raises:
        ValueError: If source is unknown
    """
    if source == "process":
        return ProcessLoginIdentityProvider()
    if source == "ticket_cache":
        return TicketCacheIdentityProvider(**kwargs)
    raise ValueError(
        f"Unknown login identity source '{source}'. Must be one of {list(IDENTITY_SOURCES)}"
    )


__all__ = [
    "IDENTITY_SOURCES",
    "LoginIdentity",
    "ProcessLoginIdentityProvider",
    "TicketCacheIdentityProvider",
    "create_identity_provider",
    "get_components",
]
