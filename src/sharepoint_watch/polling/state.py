"""Poll snapshot persistence in Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from sharepoint_watch.polling.models import PollSnapshot

if TYPE_CHECKING:
    from sharepoint_watch.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_STATE_CONTAINER = "sharepoint-watch-state"
DEFAULT_STATE_BLOB_PREFIX = "poll-state/"


class BlobPollStateStore:
    """One JSON blob per trigger instance holding its PollSnapshot."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_STATE_CONTAINER,
        blob_prefix: str = DEFAULT_STATE_BLOB_PREFIX,
    ) -> None:
        """Initialise the state store.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name for poll state.
            blob_prefix: Prefix for state blob paths (e.g. "poll-state/").
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix

    def _blob_path(self, key: str) -> str:
        return f"{self._blob_prefix}{key}.json"

    def get(self, key: str) -> PollSnapshot:
        """Read the snapshot for a trigger instance.

        Returns:
            The stored snapshot, or an empty one if none has been saved yet
            (i.e. this is the first poll).
        """
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob_path(key))
            data = blob_client.download_blob().readall()
        except ResourceNotFoundError:
            logger.info("[poll_state] no snapshot found, first poll; key:%s", key)
            return PollSnapshot()
        return PollSnapshot.from_json(data.decode("utf-8"))

    def set(self, key: str, snapshot: PollSnapshot) -> None:
        """Overwrite the snapshot for a trigger instance, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceExistsError):
            container_client.create_container()

        blob_client = container_client.get_blob_client(self._blob_path(key))
        blob_client.upload_blob(snapshot.to_json().encode("utf-8"), overwrite=True)
        logger.info(
            "[poll_state] stored snapshot; key:%s;file_count:%d",
            key,
            len(snapshot.last_known_files),
        )


def poll_state_store_from_config(config: AppConfig) -> BlobPollStateStore:
    """Construct a BlobPollStateStore from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BlobPollStateStore instance.
    """
    return BlobPollStateStore(
        storage_connection_string=config.storage_connection_string,
        container=config.state_container,
        blob_prefix=config.state_blob_prefix,
    )
