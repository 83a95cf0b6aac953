"""
Keytab location and staging.

A keytab reaches the application master in exactly one of two ways:

    LocalKeytab(path)   - already provisioned on the host; used as-is
    RemoteKeytab(name)  - stored in the shared filesystem; copied into a fresh,
                          owner-only staging directory and made owner-read-only

Staged layout:
    {staging_root}/keytab-{epoch_ms}-{random}/        mode 0700
    {staging_root}/keytab-{epoch_ms}-{random}/{name}  mode 0400

Staging directories are never reused and never cleaned up here.
"""

import os
import secrets
import stat
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Mapping, Optional, Union

from core.errors.exceptions import BadConfigurationError, StagingError
from core.logging.setup import get_logger
from core.security.keys import (
    KEY_AM_KEYTAB_LOCAL_PATH,
    KEY_AM_LOGIN_KEYTAB_NAME,
    is_set,
    is_unset,
)
from core.types import SharedFileSystem

logger = get_logger(__name__)

# rwx for owner only
STAGING_DIR_MODE = stat.S_IRWXU
# read for owner only
STAGED_KEYTAB_MODE = stat.S_IRUSR

STAGING_DIR_PREFIX = "keytab"


@dataclass(frozen=True)
class LocalKeytab:
    """Keytab file already present on the host."""

    path: str

    def describe(self) -> str:
        return f"host keytab {self.path}"


@dataclass(frozen=True)
class RemoteKeytab:
    """Keytab to be fetched from the shared filesystem."""

    name: str

    def describe(self) -> str:
        return f"shared keytab {self.name}"


KeytabSource = Union[LocalKeytab, RemoteKeytab]


def resolve_keytab_source(settings: Mapping[str, Any]) -> KeytabSource:
    """
    Decide which keytab retrieval mechanism the settings select.

    Args:
        settings: Application master component settings

    Returns:
        LocalKeytab or RemoteKeytab

    Raises:
        BadConfigurationError: If neither or both mechanisms are configured
    """
    local_path = settings.get(KEY_AM_KEYTAB_LOCAL_PATH)
    keytab_name = settings.get(KEY_AM_LOGIN_KEYTAB_NAME)
    config_keys = [KEY_AM_KEYTAB_LOCAL_PATH, KEY_AM_LOGIN_KEYTAB_NAME]

    if is_unset(local_path) and is_unset(keytab_name):
        raise BadConfigurationError(
            f"Either a keytab path on the cluster host ({KEY_AM_KEYTAB_LOCAL_PATH}) or a "
            f"keytab to be retrieved from the shared filesystem ({KEY_AM_LOGIN_KEYTAB_NAME}) "
            "is required. Please configure one of the keytab retrieval mechanisms.",
            context={"config_keys": config_keys},
        )
    if is_set(local_path) and is_set(keytab_name):
        raise BadConfigurationError(
            f"Both a keytab on the cluster host ({KEY_AM_KEYTAB_LOCAL_PATH}) and a "
            f"keytab to be retrieved from the shared filesystem ({KEY_AM_LOGIN_KEYTAB_NAME}) "
            "are specified. Please configure only one keytab retrieval mechanism.",
            context={"config_keys": config_keys},
        )

    if is_set(local_path):
        return LocalKeytab(str(local_path))
    return RemoteKeytab(str(keytab_name))


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class SecureKeytabFetcher:
    """
    Copies a keytab from the shared filesystem into a private local directory.

    Every step completes before the next one starts. Any failure aborts the
    fetch; nothing is retried. Directory name collisions are fatal.
    """

    def __init__(
        self,
        staging_root: Union[str, Path, None] = None,
        clock_ms: Callable[[], int] = _epoch_millis,
        token: Callable[[], str] = lambda: secrets.token_hex(4),
    ):
        """
        Args:
            staging_root: Parent of staging directories (default: system temp dir)
            clock_ms: Millisecond wall clock used in directory names
            token: Random suffix generator used in directory names
        """
        self.staging_root = Path(staging_root) if staging_root else Path(tempfile.gettempdir())
        self._clock_ms = clock_ms
        self._token = token

    def new_staging_dir(self) -> Path:
        """Compute (but do not create) a fresh staging directory path."""
        name = f"{STAGING_DIR_PREFIX}-{self._clock_ms()}-{self._token()}"
        return self.staging_root.absolute() / name

    @staticmethod
    def _set_mode(path: Path, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise StagingError(
                f"Unable to set permissions {oct(mode)} on {path}: {e.strerror or e}",
                path=str(path),
                cause=e,
                context={"file_mode": oct(mode)},
            ) from e

    def _create_staging_dir(self) -> Path:
        staging_dir = self.new_staging_dir()
        try:
            os.mkdir(staging_dir, STAGING_DIR_MODE)
        except OSError as e:
            raise StagingError(
                f"Unable to create local keytab directory {staging_dir}: {e.strerror or e}",
                path=str(staging_dir),
                cause=e,
            ) from e

        # mkdir mode is filtered through the umask; set it explicitly
        self._set_mode(staging_dir, STAGING_DIR_MODE)
        return staging_dir

    def fetch(self, fs: SharedFileSystem, keytab_name: str, cluster_name: str) -> Path:
        """
        Stage a shared keytab locally.

        Args:
            fs: Shared filesystem holding the keytab
            keytab_name: Configured keytab name
            cluster_name: Application cluster name

        Returns:
            Path of the staged, owner-read-only keytab

        Raises:
            StagingError: If directory creation or a permission change fails
            OSError: If the copy from the shared filesystem fails
        """
        staging_dir = self._create_staging_dir()
        logger.debug(
            "Created keytab staging directory",
            extra={"staging_dir": str(staging_dir), "file_mode": oct(STAGING_DIR_MODE)},
        )

        remote_path = fs.build_keytab_path(keytab_name, cluster_name)
        file_name = PurePosixPath(remote_path).name or PurePosixPath(keytab_name).name
        local_file = staging_dir / file_name

        fs.copy_to_local(remote_path, str(local_file), delete_source=False)

        # Only after the copy: the copy itself needs write access
        self._set_mode(local_file, STAGED_KEYTAB_MODE)

        logger.info(
            "Staged keytab from shared filesystem",
            extra={
                "keytab_name": keytab_name,
                "remote_path": remote_path,
                "keytab_path": str(local_file),
                "file_mode": oct(STAGED_KEYTAB_MODE),
            },
        )
        return local_file


class KeytabLocator:
    """Turns a KeytabSource into a local keytab file."""

    def __init__(self, cluster_name: str, fetcher: Optional[SecureKeytabFetcher] = None):
        self.cluster_name = cluster_name
        self.fetcher = fetcher or SecureKeytabFetcher()

    def get_keytab_file(
        self,
        fs: SharedFileSystem,
        source: KeytabSource,
        principal: str,
    ) -> Path:
        """
        Return the local keytab file for a source.

        The principal is only used for diagnostics.
        """
        if isinstance(source, LocalKeytab):
            logger.info(
                f"Leveraging host keytab file {source.path} to login principal {principal}",
                extra={"keytab_source": "local", "keytab_path": source.path, "principal": principal},
            )
            return Path(source.path)

        logger.info(
            f"No host keytab file path specified. Downloading keytab {source.name} "
            f"from the shared filesystem to login principal {principal}",
            extra={"keytab_source": "remote", "keytab_name": source.name, "principal": principal},
        )
        return self.fetcher.fetch(fs, source.name, self.cluster_name)


__all__ = [
    "KeytabLocator",
    "KeytabSource",
    "LocalKeytab",
    "RemoteKeytab",
    "SecureKeytabFetcher",
    "STAGED_KEYTAB_MODE",
    "STAGING_DIR_MODE",
    "resolve_keytab_source",
]
