"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library to ensure consistency and type safety.
"""

from enum import Enum
from typing import Optional, Protocol


class ErrorCategory(Enum):
    """
    Classification of startup failures.

    Every category is terminal for the current startup attempt. The category
    decides the process exit code and tells the operator where to look.

    Categories:
        BAD_CONFIGURATION: Settings are structurally invalid
                           (e.g., zero or two keytab sources, no principal)
        BAD_STATE: The environment failed while the configuration may be fine
                   (e.g., login identity subsystem unavailable)
        STAGING: Local keytab staging directory or permission work failed
        IO: Shared filesystem or identity lookup I/O failure
        UNKNOWN: Unclassified errors
    """

    BAD_CONFIGURATION = "bad_configuration"
    BAD_STATE = "bad_state"
    STAGING = "staging"
    IO = "io"
    UNKNOWN = "unknown"


class LoginIdentity(Protocol):
    """The identity the process is running as."""

    @property
    def user_name(self) -> str:
        ...

    @property
    def short_user_name(self) -> str:
        ...


class LoginIdentityProvider(Protocol):
    """
    Protocol for ambient login identity lookups.

    Implementations return None when no identity can be found and raise
    OSError when the lookup itself fails.
    """

    def get_login_identity(self) -> Optional[LoginIdentity]:
        ...


class SharedFileSystem(Protocol):
    """
    Protocol for the shared store keytabs are distributed through.

    Implementations own the remote path layout.
    """

    def build_keytab_path(self, keytab_name: str, cluster_name: str) -> str:
        """
        Build the remote path of a keytab for a cluster.

        Args:
            keytab_name: Keytab file name as configured
            cluster_name: Name of the application cluster

        Returns:
            Remote path understood by copy_to_local()
        """
        ...

    def copy_to_local(
        self,
        remote_path: str,
        local_path: str,
        delete_source: bool = False,
    ) -> None:
        """
        Copy a remote file to a local path.

        Raises:
            OSError: If the copy fails
        """
        ...


__all__ = [
    "ErrorCategory",
    "LoginIdentity",
    "LoginIdentityProvider",
    "SharedFileSystem",
]
