"""WebSocket relay client (NIP-01 publish flow).

Sends ``["EVENT", <event>]`` and waits for the matching
``["OK", <id>, <accepted>, <message>]``. ``NOTICE`` frames and messages
for other events are logged and skipped. One connection per attempt;
connection reuse and reconnection are left to a pooling layer.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import websockets
from websockets.exceptions import WebSocketException

from relaycast.core.errors import (
    RelayConnectionError,
    RelayRejectedError,
    RelayTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from relaycast.events.model import FinalizedRecord

logger = logging.getLogger(__name__)


def _parse_frame(raw: str | bytes) -> list[Any] | None:
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(frame, list) or not frame:
        return None
    return frame


class WebSocketRelay:
    """Relay endpoint reached over a WebSocket.

    Implements the :class:`~relaycast.relays.base.RelayEndpoint` protocol.
    """

    def __init__(
        self,
        url: str,
        *,
        connect_timeout: float = 5.0,
        ack_timeout: float = 10.0,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        self._url = url
        self._connect_timeout = connect_timeout
        self._ack_timeout = ack_timeout
        self._connect = connect or websockets.connect

    @property
    def url(self) -> str:
        return self._url

    def __repr__(self) -> str:
        return f"WebSocketRelay({self._url!r})"

    async def publish(self, record: FinalizedRecord) -> str:
        """Send *record* and wait for the relay's acknowledgement.

        Raises:
            RelayRejectedError: Relay answered ``OK false``.
            RelayTimeoutError: No acknowledgement within ``ack_timeout``.
            RelayConnectionError: Connection failed, was not opened within
                ``connect_timeout``, or closed early.
        """
        payload = json.dumps(["EVENT", record.to_event()], ensure_ascii=False)
        try:
            async with self._connect(
                self._url, open_timeout=self._connect_timeout
            ) as ws:
                await ws.send(payload)
                try:
                    return await asyncio.wait_for(
                        self._await_ok(ws, record.identifier),
                        timeout=self._ack_timeout,
                    )
                except TimeoutError as e:
                    msg = f"no OK received within {self._ack_timeout}s"
                    raise RelayTimeoutError(self._url, msg) from e
        except TimeoutError as e:
            # Opening handshake; TimeoutError is also an OSError.
            msg = f"connection not opened within {self._connect_timeout}s"
            raise RelayConnectionError(self._url, msg) from e
        except (WebSocketException, OSError) as e:
            raise RelayConnectionError(self._url, str(e) or type(e).__name__) from e

    async def _await_ok(self, ws: Any, identifier: str) -> str:
        while True:
            frame = _parse_frame(await ws.recv())
            if frame is None:
                logger.debug("Ignoring malformed frame from %s", self._url)
                continue
            label = frame[0]
            if label == "NOTICE":
                logger.info("Notice from %s: %s", self._url, frame[1:])
                continue
            if label != "OK" or len(frame) < 3 or frame[1] != identifier:
                continue
            message = str(frame[3]) if len(frame) > 3 else ""
            if frame[2] is not True:
                raise RelayRejectedError(self._url, message or "rejected")
            return message
