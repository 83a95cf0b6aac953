"""
WebHDFS shared filesystem client.

Relative base paths resolve against the HDFS home directory of the user the
client acts as, so the default layout is:
    /user/{user}/.amsecurity/cluster/{cluster_name}/keytabs/{keytab_name}
"""

from typing import Optional

from hdfs import InsecureClient
from hdfs.util import HdfsError

from core.logging.setup import get_logger
from core.storage.filesystem import build_keytab_path

logger = get_logger(__name__)

DEFAULT_BASE_PATH = ".amsecurity"


class WebHdfsFileSystem:
    """
    Shared filesystem backed by HDFS, accessed over WebHDFS.

    HDFS errors are reported as OSError so callers handle every shared store
    the same way.
    """

    def __init__(
        self,
        url: str,
        user: Optional[str] = None,
        base_path: Optional[str] = None,
        client: Optional[InsecureClient] = None,
    ):
        """
        Args:
            url: WebHDFS endpoint, e.g. http://namenode:9870
            user: HDFS user to act as (default: the local login user)
            base_path: Keytab root; relative paths resolve against the home directory
            client: Pre-built hdfs client (tests)
        """
        self.url = url
        self.user = user
        self.base_path = base_path or DEFAULT_BASE_PATH
        self._client = client or InsecureClient(url, user=user)

    def build_keytab_path(self, keytab_name: str, cluster_name: str) -> str:
        return build_keytab_path(self.base_path, cluster_name, keytab_name)

    def copy_to_local(
        self,
        remote_path: str,
        local_path: str,
        delete_source: bool = False,
    ) -> None:
        """
        Download an HDFS file to a local path.

        Raises:
            OSError: If the download (or requested source deletion) fails
        """
        try:
            self._client.download(remote_path, local_path, overwrite=False)
        except HdfsError as e:
            raise OSError(f"Unable to copy {remote_path} from {self.url}: {e}") from e

        logger.debug(
            "Downloaded file from WebHDFS",
            extra={
                "remote_path": remote_path,
                "keytab_path": local_path,
                "shared_fs": "webhdfs",
                "shared_fs_url": self.url,
            },
        )

        if delete_source:
            try:
                self._client.delete(remote_path)
            except HdfsError as e:
                raise OSError(f"Unable to delete {remote_path} from {self.url}: {e}") from e

    def __repr__(self) -> str:
        return f"WebHdfsFileSystem(url={self.url!r}, user={self.user!r}, base_path={self.base_path!r})"
