"""
Shared filesystem layout and the host-mounted client.

Keytab paths follow one layout regardless of the backing store:
    {base_path}/cluster/{cluster_name}/keytabs/{keytab_name}

Names are validated before they are joined into a path so a configured keytab
name can never address a file outside its cluster's keytab directory.
"""

import os
import posixpath
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from core.logging.setup import get_logger

logger = get_logger(__name__)

SHARED_FS_TYPES = ("local", "webhdfs")

CLUSTER_DIR = "cluster"
KEYTAB_DIR = "keytabs"


def validate_keytab_name(name: str, what: str = "keytab name") -> None:
    """
    Validate a single path segment used in the keytab layout.

    Raises:
        ValueError: If the name is empty, absolute, or escapes its directory
    """
    if not name:
        raise ValueError(f"Empty {what}")
    if name.startswith("/") or os.path.isabs(name):
        raise ValueError(f"{what} must be relative, got absolute path: {name}")
    if ".." in name.replace("\\", "/").split("/"):
        raise ValueError(f"{what} cannot contain '..': {name}")


def build_keytab_path(base_path: str, cluster_name: str, keytab_name: str) -> str:
    """
    Build the shared path of a cluster's keytab.

    Examples:
        >>> build_keytab_path("/user/app/.amsecurity", "analytics", "app.keytab")
        '/user/app/.amsecurity/cluster/analytics/keytabs/app.keytab'
    """
    validate_keytab_name(cluster_name, "cluster name")
    validate_keytab_name(keytab_name)
    base = base_path.rstrip("/") or "/"
    return posixpath.join(base, CLUSTER_DIR, cluster_name, KEYTAB_DIR, keytab_name)


class LocalSharedFileSystem:
    """
    Shared store mounted on the host.

    Usage:
        fs = LocalSharedFileSystem(base_path=Path("/mnt/shared"))
        remote = fs.build_keytab_path("app.keytab", "analytics")
        fs.copy_to_local(remote, "/tmp/keytab-1/app.keytab")
    """

    def __init__(self, base_path: Path | str):
        self.base_path = Path(base_path).resolve()

    def _validate_remote_path(self, remote_path: str) -> Path:
        resolved = Path(remote_path).resolve()
        try:
            resolved.relative_to(self.base_path)
        except ValueError:
            raise ValueError(f"Remote path escapes shared filesystem base: {remote_path}")
        return resolved

    def build_keytab_path(self, keytab_name: str, cluster_name: str) -> str:
        return build_keytab_path(self.base_path.as_posix(), cluster_name, keytab_name)

    def copy_to_local(
        self,
        remote_path: str,
        local_path: str,
        delete_source: bool = False,
    ) -> None:
        """
        Copy a file from the shared store to a local path.

        Raises:
            OSError: If the source is missing or the copy fails
            ValueError: If remote_path lies outside base_path
        """
        source = self._validate_remote_path(remote_path)
        shutil.copyfile(source, local_path)
        logger.debug(
            "Copied file from shared filesystem",
            extra={"remote_path": str(source), "keytab_path": local_path, "shared_fs": "local"},
        )
        if delete_source:
            source.unlink()

    def __repr__(self) -> str:
        return f"LocalSharedFileSystem(base_path={str(self.base_path)!r})"


def create_shared_filesystem(settings: Optional[Dict[str, Any]]):
    """
    Build a shared filesystem client from configuration.

    Args:
        settings: shared_fs configuration section
            type: local | webhdfs
            base_path: store root (local) or keytab root in HDFS (webhdfs)
            url: WebHDFS endpoint (webhdfs only)
            user: HDFS user to act as (webhdfs only)

    Returns:
        Client instance, or None if settings is empty

    Raises:
        ValueError: If the type is unknown or required settings are missing
    """
    if not settings:
        return None

    fs_type = settings.get("type", "local")
    if fs_type == "local":
        base_path = settings.get("base_path")
        if not base_path:
            raise ValueError("shared_fs.base_path is required for a local shared filesystem")
        return LocalSharedFileSystem(base_path)

    if fs_type == "webhdfs":
        from core.storage.webhdfs import WebHdfsFileSystem

        url = settings.get("url")
        if not url:
            raise ValueError("shared_fs.url is required for a webhdfs shared filesystem")
        return WebHdfsFileSystem(
            url=url,
            user=settings.get("user") or None,
            base_path=settings.get("base_path") or None,
        )

    raise ValueError(
        f"Unknown shared filesystem type '{fs_type}'. Must be one of {list(SHARED_FS_TYPES)}"
    )
