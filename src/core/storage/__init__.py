"""
Shared filesystem clients.

Keytabs distributed to application masters live in a shared store under:
    {base_path}/cluster/{cluster_name}/keytabs/{keytab_name}

Clients:
    LocalSharedFileSystem - shared store mounted on the host (NFS, ...)
    WebHdfsFileSystem     - HDFS over WebHDFS
"""

from core.storage.filesystem import (
    SHARED_FS_TYPES,
    LocalSharedFileSystem,
    build_keytab_path,
    create_shared_filesystem,
    validate_keytab_name,
)
from core.storage.webhdfs import WebHdfsFileSystem

__all__ = [
    "SHARED_FS_TYPES",
    "LocalSharedFileSystem",
    "WebHdfsFileSystem",
    "build_keytab_path",
    "create_shared_filesystem",
    "validate_keytab_name",
]
