"""
Git LFS custom transfer protocol loop.

States::

    IDLE --init--> READY --upload/download--> READY --terminate/EOF--> TERMINATED

Each upload or download is processed to completion before the next line is
read, and produces exactly one ``complete`` line, in request order.
``init`` is answered with ``{}``; ``terminate`` gets no answer. The loop is
also the error boundary: per-object failures become failure responses and
never end the process. Only a framing error (a line that is not a JSON
object) stops it.
"""
from __future__ import annotations

import enum
import logging
from typing import IO, Optional, Union

from .cache import ObjectCache
from .errors import AgentError, ProtocolError
from .events import (
    INIT_ACK,
    CompleteEvent,
    DownloadEvent,
    InitEvent,
    InvalidEvent,
    TerminateEvent,
    UnknownEvent,
    UploadEvent,
    decode_event,
    encode_message,
)
from .settings import Settings
from .storage.base import ObjectStore
from .transfer import TransferOutcome, download_object, upload_object

__all__ = ["Agent", "AgentState"]

logger = logging.getLogger(__name__)


class AgentState(enum.Enum):
    IDLE = "idle"
    READY = "ready"
    TERMINATED = "terminated"


class Agent:
    """
    Sequential transfer agent.

    ``concurrenttransfers`` from init is advisory and ignored: one object is
    in flight at a time.
    """

    def __init__(self, *, settings: Settings, store: ObjectStore, cache: Optional[ObjectCache] = None) -> None:
        self.settings = settings
        self.store = store
        self.cache = cache or ObjectCache(settings.cache_root, settings.prefix_length)
        self.state = AgentState.IDLE
        self.operation: Optional[str] = None

    def run(self, stdin: IO[str], stdout: IO[str]) -> None:
        """
        Consume protocol lines until terminate or end of input.

        Raises:
            ProtocolError: If a line is not a JSON object
        """
        if not self.settings.verify_upload:
            logger.info("Upload verification disabled: declared oids are trusted without re-hashing")

        for line in stdin:
            line = line.strip()
            if not line:
                continue
            try:
                event = decode_event(line)
            except ProtocolError:
                self.state = AgentState.TERMINATED
                raise
            response = self.handle(event)
            if response is not None:
                stdout.write(encode_message(response) + "\n")
                stdout.flush()
            if self.state is AgentState.TERMINATED:
                return

        # End of input counts as terminate
        logger.debug("Input closed; terminating")
        self.state = AgentState.TERMINATED

    def handle(
        self,
        event: Union[InitEvent, UploadEvent, DownloadEvent, TerminateEvent, UnknownEvent, InvalidEvent],
    ) -> Optional[Union[CompleteEvent, dict]]:
        """Apply one decoded event; return the response to write, if any."""
        if isinstance(event, InitEvent):
            return self._init(event)

        if isinstance(event, TerminateEvent):
            logger.debug("Terminate received")
            self.state = AgentState.TERMINATED
            return None

        if isinstance(event, UnknownEvent):
            logger.warning(f"Ignoring unknown event {event.event!r}")
            return None

        if isinstance(event, InvalidEvent):
            if event.event == "init":
                logger.warning(f"{event.message}; acknowledging anyway")
                self.state = AgentState.READY
                return INIT_ACK
            logger.error(event.message)
            if event.oid is None:
                return None
            return CompleteEvent.failure(event.oid, event.message)

        if self.state is not AgentState.READY:
            message = f"Received {event.event} before init"
            logger.error(message)
            return CompleteEvent.failure(event.oid, message)

        return self._transfer(event)

    def _init(self, event: InitEvent) -> dict:
        if self.state is AgentState.READY:
            logger.warning("Duplicate init received")
        self.state = AgentState.READY
        self.operation = event.operation
        if event.concurrent and event.concurrenttransfers > 1:
            logger.debug(
                f"Caller offered {event.concurrenttransfers} concurrent transfers; processing sequentially"
            )
        logger.debug(f"Initialized for {event.operation} on remote {event.remote!r}")
        return INIT_ACK

    def _transfer(self, event: Union[UploadEvent, DownloadEvent]) -> CompleteEvent:
        try:
            if isinstance(event, UploadEvent):
                outcome = upload_object(event, store=self.store, settings=self.settings)
            else:
                outcome = download_object(event, store=self.store, cache=self.cache, settings=self.settings)
        except AgentError as e:
            logger.error(f"{event.event} {event.oid} failed [{e.kind}]: {e}")
            return CompleteEvent.failure(event.oid, str(e))
        except OSError as e:
            logger.error(f"{event.event} {event.oid} failed [os-error]: {e}")
            return CompleteEvent.failure(event.oid, f"{type(e).__name__}: {e}")

        self._log_outcome(event, outcome)
        path = str(outcome.path) if outcome.path is not None else None
        return CompleteEvent.success(event.oid, path)

    @staticmethod
    def _log_outcome(event: Union[UploadEvent, DownloadEvent], outcome: TransferOutcome) -> None:
        if outcome.remote_unknown:
            logger.warning(f"{event.event} {event.oid}: existence check failed, transferred without it")
        if outcome.skipped:
            reason = "remote digest matches" if isinstance(event, UploadEvent) else "cache hit"
            logger.info(f"{event.event} {event.oid} skipped ({reason})")
        else:
            logger.info(f"{event.event} {event.oid} complete")
        if outcome.backfilled:
            logger.info(f"Back-filled remote digest for {event.oid}")
