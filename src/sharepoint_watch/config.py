"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

DEFAULT_POLL_SCHEDULE = "0 */1 * * * *"
DEFAULT_EVENT_CONTAINER = "sharepoint-watch-events"


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Trigger options
    have sensible defaults but can be overridden via environment variables.
    """

    # Required — no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    tenant_id: str
    site_url: str
    storage_connection_string: str

    # Auth
    authority_host: str = "https://login.microsoftonline.com"

    # Trigger options
    folder_path: str = "/"
    event: str = "fileAdded"
    file_extensions: tuple[str, ...] = ()
    include_subfolders: bool = False
    download_content: bool = False
    max_depth: int = 32
    test_sample_size: int = 3
    trigger_id: str = "default"

    # Poll state persistence
    state_container: str = "sharepoint-watch-state"
    state_blob_prefix: str = "poll-state/"


def parse_extensions(raw: str) -> tuple[str, ...]:
    """Split a comma-separated extension list into lowercase names without dots.

    Args:
        raw: Value such as "pdf, .DOCX,xlsx".

    Returns:
        Tuple of normalized extensions, e.g. ("pdf", "docx", "xlsx").
    """
    extensions = (part.strip().lower().lstrip(".") for part in raw.split(","))
    return tuple(ext for ext in extensions if ext)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        SP_CLIENT_ID: Azure AD application (client) ID.
        SP_CLIENT_SECRET: Azure AD application client secret.
        SP_TENANT_ID: Azure AD tenant ID.
        SP_SITE_URL: SharePoint site URL (e.g. https://contoso.sharepoint.com/sites/hr).
        AzureWebJobsStorage: Azure Storage account connection string.

    Optional environment variables (with defaults):
        SP_AUTHORITY_HOST: Login host for token acquisition.
        SP_FOLDER_PATH: Folder to monitor, relative to the Documents library (default: /).
        SP_EVENT: fileAdded, fileModified or fileAddedOrModified (default: fileAdded).
        SP_FILE_EXTENSIONS: Comma-separated extensions to monitor (default: all files).
        SP_INCLUDE_SUBFOLDERS: Monitor subfolders recursively (default: false).
        SP_DOWNLOAD_CONTENT: Attach file content to emitted events (default: false).
        SP_MAX_DEPTH: Maximum subfolder depth for recursive listing (default: 32).
        SP_TEST_SAMPLE_SIZE: Files returned by a test poll (default: 3).
        SP_TRIGGER_ID: Identity of this trigger instance for poll state (default: default).
        SP_STATE_CONTAINER: Blob container for poll state.
        SP_STATE_BLOB_PREFIX: Blob path prefix for poll state files.

    The timer trigger bindings are configured separately through
    SP_POLL_SCHEDULE and SP_EVENT_CONTAINER; see poll_schedule() and
    events_blob_path().

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["SP_CLIENT_ID"],
        client_secret=os.environ["SP_CLIENT_SECRET"],
        tenant_id=os.environ["SP_TENANT_ID"],
        site_url=os.environ["SP_SITE_URL"],
        storage_connection_string=os.environ["AzureWebJobsStorage"],  # noqa: SIM112
        authority_host=os.environ.get("SP_AUTHORITY_HOST", "https://login.microsoftonline.com"),
        folder_path=os.environ.get("SP_FOLDER_PATH", "/"),
        event=os.environ.get("SP_EVENT", "fileAdded"),
        file_extensions=parse_extensions(os.environ.get("SP_FILE_EXTENSIONS", "")),
        include_subfolders=_env_flag("SP_INCLUDE_SUBFOLDERS"),
        download_content=_env_flag("SP_DOWNLOAD_CONTENT"),
        max_depth=int(os.environ.get("SP_MAX_DEPTH", "32")),
        test_sample_size=int(os.environ.get("SP_TEST_SAMPLE_SIZE", "3")),
        trigger_id=os.environ.get("SP_TRIGGER_ID", "default"),
        state_container=os.environ.get("SP_STATE_CONTAINER", "sharepoint-watch-state"),
        state_blob_prefix=os.environ.get("SP_STATE_BLOB_PREFIX", "poll-state/"),
    )


def poll_schedule() -> str:
    """Return the timer trigger schedule from SP_POLL_SCHEDULE.

    Read when the function app is indexed, before any invocation, so it
    cannot come from a full load_config() which requires credentials.
    """
    return os.environ.get("SP_POLL_SCHEDULE", "").strip() or DEFAULT_POLL_SCHEDULE


def events_blob_path() -> str:
    """Return the blob output path for events emitted by scheduled polls.

    Each poll with changes writes one JSON array to a new blob in
    SP_EVENT_CONTAINER (default: sharepoint-watch-events).
    """
    container = os.environ.get("SP_EVENT_CONTAINER", "").strip() or DEFAULT_EVENT_CONTAINER
    return f"{container}/{{rand-guid}}.json"
