"""
websockets 기반 WebSocket 전송 계층

IWsTransport Protocol 구현.
ping/pong heartbeat는 websockets 라이브러리가 처리하며,
heartbeat 실패나 소켓 종료는 TransportClosed로 변환.
"""

import logging

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from adapters.max.errors import TransportClosed, TransportError
from core.constants import Defaults

logger = logging.getLogger(__name__)


class WebsocketsTransport:
    """websockets 라이브러리 전송 계층

    Args:
        ping_interval: ping 간격 (초)
        ping_timeout: pong 대기 시간 (초, 초과 시 연결 종료)
    """

    def __init__(
        self,
        ping_interval: float = Defaults.WS_PING_INTERVAL_SEC,
        ping_timeout: float = Defaults.WS_PING_TIMEOUT_SEC,
    ):
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self._ws: ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def connect(self, url: str) -> None:
        """WebSocket 연결

        Raises:
            TransportError: 연결 실패
        """
        if self._ws is not None:
            await self.close()

        try:
            self._ws = await connect(
                url,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
            )
        except (OSError, InvalidHandshake, InvalidURI, TimeoutError) as e:
            logger.error("WebSocket 연결 실패", extra={"url": url, "error": str(e)})
            raise TransportError(f"WebSocket connect to {url} failed: {e}") from e

        logger.info("WebSocket 연결 성공", extra={"url": url})

    async def send(self, text: str) -> None:
        if self._ws is None:
            raise TransportClosed(reason="not connected")
        try:
            await self._ws.send(text)
        except ConnectionClosed as e:
            self._ws = None
            raise TransportClosed(_close_code(e), _close_reason(e)) from e

    async def recv(self) -> str:
        if self._ws is None:
            raise TransportClosed(reason="not connected")
        try:
            message = await self._ws.recv()
        except ConnectionClosed as e:
            logger.warning(
                "WebSocket 연결 끊김",
                extra={"code": _close_code(e), "reason": _close_reason(e)},
            )
            self._ws = None
            raise TransportClosed(_close_code(e), _close_reason(e)) from e

        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace")
        return message

    async def close(self) -> None:
        if self._ws is None:
            return
        ws, self._ws = self._ws, None
        await ws.close()
        logger.info("WebSocket 연결 종료")


def _close_code(error: ConnectionClosed) -> int | None:
    frame = error.rcvd or error.sent
    return frame.code if frame is not None else None


def _close_reason(error: ConnectionClosed) -> str:
    frame = error.rcvd or error.sent
    return frame.reason if frame is not None else ""
