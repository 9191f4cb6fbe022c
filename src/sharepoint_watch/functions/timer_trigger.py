"""Timer trigger blueprint — scheduled poll of the monitored SharePoint folder."""

import json
import logging

import azure.functions as func

from sharepoint_watch.config import events_blob_path, load_config, poll_schedule
from sharepoint_watch.polling.poller import poller_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.timer_trigger(
    schedule=poll_schedule(),
    arg_name="timer",
    run_on_startup=False,
)
@bp.blob_output(
    arg_name="changes",
    path=events_blob_path(),
    connection="AzureWebJobsStorage",
)
def timer_trigger(timer: func.TimerRequest, changes: func.Out[str]) -> None:
    """Scheduled trigger that polls SharePoint for new or modified files.

    Runs on the SP_POLL_SCHEDULE schedule (every minute by default). When
    changes are detected, their event payloads are written as one JSON
    array to a new blob in the events container. The snapshot is replaced
    whether or not anything changed.
    """
    logger.info("Timer trigger fired")

    try:
        if timer.past_due:
            logger.warning("Timer trigger is past due")

        config = load_config()
        poller = poller_from_config(config)
        events = poller.poll()
        for event in events:
            logger.info(
                "SharePoint change: %s %s (%s)", event.event, event.file.name, event.file.id
            )
        if events:
            changes.set(json.dumps([event.to_dict() for event in events]))
        logger.info("Poll complete, %d change(s) detected", len(events))

    except Exception:
        logger.exception("Timer trigger failed")
        raise
