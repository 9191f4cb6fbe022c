"""HTTP trigger blueprint — health check, poll and document operation endpoints."""

import json
import logging
from typing import Any

import azure.functions as func

from sharepoint_watch import __version__
from sharepoint_watch.config import load_config
from sharepoint_watch.graph.errors import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    SharePointError,
)
from sharepoint_watch.graph.models import ListOptions
from sharepoint_watch.operations.documents import (
    DocumentOperation,
    DocumentOperationError,
    DocumentRequest,
    document_service_from_config,
)
from sharepoint_watch.polling.poller import PollInProgressError, poller_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()

_NEXT_STEPS = [
    "Upload a test file to the monitored folder",
    "Check that the folder path is correct",
    "Verify the file extension filter if specified",
    "Activate the trigger to start monitoring for new files",
]


def _json_response(body: Any, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(body), status_code=status_code, mimetype="application/json")


def _status_for(exc: Exception) -> int:
    """Map an exception onto the HTTP status returned to the caller."""
    if isinstance(exc, DocumentOperationError):
        return _status_for(exc.cause)
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, PermissionDeniedError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, PollInProgressError):
        return 409
    if isinstance(exc, ValueError):
        # InvalidPathError and InvalidSiteUrlError are ValueErrors too
        return 400
    if isinstance(exc, SharePointError):
        return 502
    return 500


def _error_response(func_name: str, exc: Exception) -> func.HttpResponse:
    status_code = _status_for(exc)
    logger.error("[%s] request failed; status:%d", func_name, status_code, exc_info=True)
    message = str(exc) if status_code != 500 else "Internal server error"
    return _json_response({"status": "error", "message": message}, status_code)


def _parse_document_request(raw: Any) -> DocumentRequest:
    if not isinstance(raw, dict):
        raise ValueError("Each item must be a JSON object")
    options = raw.get("options") or {}
    if not isinstance(options, dict):
        raise ValueError("Item options must be a JSON object")
    top = options.get("top")
    return DocumentRequest(
        operation=DocumentOperation(raw.get("operation", DocumentOperation.LIST_DOCUMENTS)),
        library_path=raw.get("libraryPath") or "/",
        document_id=raw.get("documentId") or "",
        options=ListOptions(
            select=options.get("select") or None,
            top=int(top) if top else None,
            filter=options.get("filter") or None,
        ),
    )


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status and version.
    """
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__})

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _json_response({"status": "error", "message": "Internal server error"}, 500)


@bp.route(route="poll/test", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def fetch_test_events(req: func.HttpRequest) -> func.HttpResponse:
    """Fetch test event: returns a few existing files tagged as test data.

    Never reads or writes the poll snapshot. When the folder holds no
    matching files, a notice with next steps is returned instead.
    """
    logger.info("[fetch_test_events] test poll requested")

    try:
        config = load_config()
        poller = poller_from_config(config)
        events = poller.poll(test_mode=True)

        if not events:
            folder_path = poller.settings.folder_path
            logger.info("[fetch_test_events] no files found; folder_path:%s", folder_path)
            return _json_response(
                {
                    "testMode": True,
                    "message": f"TEST MODE: No files found in folder path {folder_path}",
                    "folderPath": folder_path,
                    "totalFilesFound": 0,
                    "nextSteps": _NEXT_STEPS,
                }
            )

        return _json_response({"testMode": True, "events": [e.to_dict() for e in events]})

    except Exception as exc:
        return _error_response("fetch_test_events", exc)


@bp.route(route="poll", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manual_poll(req: func.HttpRequest) -> func.HttpResponse:
    """Manual poll endpoint — runs the same poll as the timer trigger on demand.

    Requires a function key for authentication. Returns the detected changes
    in the HTTP response.
    """
    logger.info("[manual_poll] manual poll requested")

    try:
        config = load_config()
        events = poller_from_config(config).poll()
        logger.info("[manual_poll] poll complete; event_count:%d", len(events))
        return _json_response(
            {"status": "ok", "changes": len(events), "events": [e.to_dict() for e in events]}
        )

    except Exception as exc:
        return _error_response("manual_poll", exc)


@bp.route(route="documents", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def document_operations(req: func.HttpRequest) -> func.HttpResponse:
    """Run a batch of listDocuments, getDocument and downloadDocument items.

    Expects a JSON body ``{"items": [...], "continueOnFail": bool}``. Each
    item carries ``operation``, ``libraryPath``, ``documentId`` and
    ``options`` (``select``, ``top``, ``filter``).
    """
    logger.info("[document_operations] document operations requested")

    try:
        body = req.get_json()
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        requests = [_parse_document_request(item) for item in body.get("items") or []]
        continue_on_fail = bool(body.get("continueOnFail", False))

        config = load_config()
        results = document_service_from_config(config).run(requests, continue_on_fail)
        logger.info("[document_operations] batch complete; item_count:%d", len(results))
        return _json_response({"status": "ok", "results": [r.to_dict() for r in results]})

    except Exception as exc:
        return _error_response("document_operations", exc)
