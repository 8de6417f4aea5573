"""
Mock WebSocket 전송 계층

테스트용 IWsTransport 구현.
수신 프레임을 주입하고 송신 프레임을 기록.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from adapters.max.errors import TransportClosed, TransportError


@dataclass(frozen=True)
class _CloseSignal:
    """수신 대기열에 넣는 연결 종료 신호"""

    code: int | None = None
    reason: str = ""


class MockWsTransport:
    """Mock WebSocket 전송 계층

    IWsTransport Protocol 구현.

    사용 예시:
    ```python
    transport = MockWsTransport()
    session = WsSession(transport, signer=signer)
    await session.connect()

    # 서버 프레임 주입
    await session.handle_frame(json.dumps({"e": "authenticated", "i": "", "T": 1}))

    # 송신 프레임 확인
    assert transport.sent_frames()[0]["action"] == "auth"
    ```
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.connected_urls: list[str] = []
        self.close_count = 0

        self._open = False
        self._queue: asyncio.Queue[str | _CloseSignal] = asyncio.Queue()
        self._fail_next_connect: Exception | None = None
        self._fail_next_send: Exception | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    # -------------------------------------------------------------------------
    # IWsTransport
    # -------------------------------------------------------------------------

    async def connect(self, url: str) -> None:
        if self._fail_next_connect is not None:
            error, self._fail_next_connect = self._fail_next_connect, None
            raise error

        # 이전 연결의 종료 신호 제거 (주입된 프레임은 유지)
        remaining: list[str | _CloseSignal] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if not isinstance(item, _CloseSignal):
                remaining.append(item)
        for item in remaining:
            self._queue.put_nowait(item)

        self._open = True
        self.connected_urls.append(url)

    async def send(self, text: str) -> None:
        if not self._open:
            raise TransportClosed(reason="not connected")
        if self._fail_next_send is not None:
            error, self._fail_next_send = self._fail_next_send, None
            self._open = False
            raise error
        self.sent.append(text)

    async def recv(self) -> str:
        if not self._open and self._queue.empty():
            raise TransportClosed(reason="not connected")

        item = await self._queue.get()
        if isinstance(item, _CloseSignal):
            self._open = False
            raise TransportClosed(item.code, item.reason)
        return item

    async def close(self) -> None:
        if self._open:
            self._open = False
            self.close_count += 1
            self._queue.put_nowait(_CloseSignal(1000, "client close"))

    # -------------------------------------------------------------------------
    # 테스트 헬퍼
    # -------------------------------------------------------------------------

    def inject_message(self, message: dict[str, Any] | str) -> None:
        """수신 프레임 주입 (dict는 JSON으로 직렬화)"""
        text = message if isinstance(message, str) else json.dumps(message)
        self._queue.put_nowait(text)

    def simulate_disconnect(self, code: int = 1006, reason: str = "connection lost") -> None:
        """서버 측 연결 끊김 시뮬레이션 (대기 중인 recv()가 TransportClosed 발생)"""
        self._queue.put_nowait(_CloseSignal(code, reason))

    def fail_next_connect(self, error: Exception | None = None) -> None:
        self._fail_next_connect = error or TransportError("mock connect failure")

    def fail_next_send(self, error: Exception | None = None) -> None:
        self._fail_next_send = error or TransportClosed(1006, "mock send failure")

    def sent_frames(self) -> list[dict[str, Any]]:
        """송신한 프레임 (JSON 파싱)"""
        return [json.loads(text) for text in self.sent]

    def sent_actions(self) -> list[str]:
        """송신한 프레임의 action 목록"""
        return [frame["action"] for frame in self.sent_frames()]

    def subscribed_channels(self) -> list[str]:
        """sub 프레임으로 요청한 채널 (channel[:market[:depth]])"""
        keys: list[str] = []
        for frame in self.sent_frames():
            if frame["action"] != "sub":
                continue
            for item in frame["subscriptions"]:
                parts = [item["channel"]]
                if "market" in item:
                    parts.append(item["market"])
                if "depth" in item:
                    parts.append(str(item["depth"]))
                keys.append(":".join(parts))
        return keys

    def clear_sent(self) -> None:
        self.sent.clear()
