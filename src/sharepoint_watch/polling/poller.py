"""SharePoint poller: runs one poll cycle from token to emitted events."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sharepoint_watch.graph.auth import TokenProvider, token_provider_from_config
from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.content import ContentFetcher
from sharepoint_watch.graph.errors import SharePointError
from sharepoint_watch.graph.listing import FolderLister
from sharepoint_watch.graph.models import FileRecord
from sharepoint_watch.graph.sites import SiteResolver
from sharepoint_watch.polling.detection import detect_changes, sample_files
from sharepoint_watch.polling.models import (
    TEST_EVENT,
    ChangeEvent,
    FolderInfo,
    PollEvent,
    PollSnapshot,
    TriggerSettings,
)
from sharepoint_watch.polling.state import BlobPollStateStore, poll_state_store_from_config

if TYPE_CHECKING:
    from sharepoint_watch.config import AppConfig

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_instance_locks: dict[str, threading.Lock] = {}


class PollInProgressError(Exception):
    """Raised when a poll for the same trigger instance is already running."""


def _instance_lock(key: str) -> threading.Lock:
    with _registry_lock:
        return _instance_locks.setdefault(key, threading.Lock())


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class SharePointPoller:
    """Detects new and modified files in a SharePoint folder."""

    def __init__(
        self,
        token_provider: TokenProvider,
        state_store: BlobPollStateStore,
        site_url: str,
        settings: TriggerSettings,
        instance_id: str = "default",
        clock: Callable[[], datetime] = _utc_now,
        rng: random.Random | None = None,
    ) -> None:
        """Initialise the poller.

        Args:
            token_provider: Source of a fresh access token for each poll.
            state_store: Persistence for the PollSnapshot between polls.
            site_url: SharePoint site URL holding the monitored library.
            settings: Folder, event and filter configuration of this trigger.
            instance_id: Identity of this trigger instance; scopes the snapshot.
            clock: Returns the current time; injected for tests.
            rng: Random source for test-mode sampling.
        """
        self._tokens = token_provider
        self._store = state_store
        self._site_url = site_url
        self._settings = settings
        self._instance_id = instance_id
        self._clock = clock
        self._rng = rng

    @property
    def settings(self) -> TriggerSettings:
        return self._settings

    def poll(self, test_mode: bool = False) -> list[PollEvent]:
        """Run one poll cycle.

        A normal poll compares the listing with the stored snapshot, replaces
        the snapshot and returns one event per detected change. A test poll
        (interactive "fetch test event") returns a few sample files tagged as
        test data and never reads or writes the snapshot.

        Identity resolution and top-level listing failures propagate and leave
        the snapshot untouched. Download failures are recorded per event.

        Args:
            test_mode: Return sample files instead of detected changes.

        Returns:
            Events to hand to the workflow host; empty when nothing changed.

        Raises:
            PollInProgressError: If a normal poll of this instance is already running.
            SharePointError: On fatal resolution or listing failures.
        """
        key = self._settings.state_key(self._instance_id)
        if test_mode:
            return self._run(key, test_mode=True)

        lock = _instance_lock(key)
        if not lock.acquire(blocking=False):
            raise PollInProgressError(f"A poll is already running for trigger instance {key}")
        try:
            return self._run(key, test_mode=False)
        finally:
            lock.release()

    def _run(self, key: str, test_mode: bool) -> list[PollEvent]:
        settings = self._settings
        logger.info(
            "[poll] starting %s; folder_path:%s;event:%s",
            "test poll" if test_mode else "poll",
            settings.folder_path,
            settings.event,
        )
        previous = PollSnapshot() if test_mode else self._store.get(key)
        now = self._clock()

        token = self._tokens.get_access_token()
        graph = GraphClient(token.access_token)
        site_id, drive_id = SiteResolver(graph).resolve(self._site_url)
        logger.info("[poll] resolved site; site_id:%s;drive_id:%s", site_id, drive_id)

        files = self._filter_extensions(self._list_files(FolderLister(graph), drive_id))

        snapshot: PollSnapshot | None = None
        if test_mode:
            selected = sample_files(files, settings.sample_size, self._rng)
            event_name = TEST_EVENT
        else:
            selected, snapshot = detect_changes(previous, files, settings.event, now)
            event_name = str(settings.event)

        folder = FolderInfo(path=settings.folder_path, drive_id=drive_id, site_id=site_id)
        events = [
            PollEvent(event=event_name, file=f, folder=folder, timestamp=now, test_mode=test_mode)
            for f in selected
        ]
        if settings.download_content:
            self._attach_content(ContentFetcher(graph), drive_id, events)

        if snapshot is not None:
            self._store.set(key, snapshot)
        logger.info(
            "[poll] poll complete; file_count:%d;event_count:%d;test_mode:%s",
            len(files),
            len(events),
            test_mode,
        )
        return events

    def _list_files(self, lister: FolderLister, drive_id: str) -> list[FileRecord]:
        settings = self._settings
        if settings.include_subfolders:
            return lister.list_files_recursive(drive_id, settings.folder_path, settings.max_depth)
        return lister.list_files(drive_id, settings.folder_path)

    def _filter_extensions(self, files: list[FileRecord]) -> list[FileRecord]:
        extensions = self._settings.file_extensions
        if not extensions:
            return files
        filtered = [f for f in files if f.extension and f.extension in extensions]
        logger.info(
            "[poll] filtered by extension; extensions:%s;before:%d;after:%d",
            ",".join(extensions),
            len(files),
            len(filtered),
        )
        return filtered

    @staticmethod
    def _attach_content(fetcher: ContentFetcher, drive_id: str, events: list[PollEvent]) -> None:
        for event in events:
            try:
                event.content = fetcher.fetch_content(drive_id, event.file.id)
            except SharePointError as exc:
                logger.warning("[poll] download failed; file_id:%s;error:%s", event.file.id, exc)
                event.download_error = str(exc)


def trigger_settings_from_config(config: AppConfig) -> TriggerSettings:
    """Construct TriggerSettings from application configuration.

    Raises:
        ValueError: If the configured event is not a known ChangeEvent.
    """
    return TriggerSettings(
        event=ChangeEvent(config.event),
        folder_path=config.folder_path,
        file_extensions=config.file_extensions,
        include_subfolders=config.include_subfolders,
        download_content=config.download_content,
        max_depth=config.max_depth,
        sample_size=config.test_sample_size,
    )


def poller_from_config(config: AppConfig) -> SharePointPoller:
    """Construct a SharePointPoller from application configuration.

    Wires a TokenProvider and BlobPollStateStore from the config into a
    SharePointPoller for the configured trigger instance.

    Args:
        config: Application configuration instance.

    Returns:
        Configured SharePointPoller instance.
    """
    return SharePointPoller(
        token_provider=token_provider_from_config(config),
        state_store=poll_state_store_from_config(config),
        site_url=config.site_url,
        settings=trigger_settings_from_config(config),
        instance_id=config.trigger_id,
    )
