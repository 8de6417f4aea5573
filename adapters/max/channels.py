"""
WebSocket 채널 레지스트리

구독할 채널 명세(ChannelSpec)의 집합 관리.
호출자가 언제든 추가/삭제하고, 세션은 (재)연결 시 스냅샷을 읽어 구독.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from core.types import PRIVATE_CHANNELS, PUBLIC_CHANNELS, Channel, ChannelScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelSpec:
    """채널 구독 명세 (불변, 해시 가능)

    동일성은 (channel, scope, market, depth) 전체 튜플 기준.

    Attributes:
        channel: 채널 이름
        scope: public / private
        market: 마켓 심볼 (예: btcusdt, private 채널은 None)
        depth: 호가 깊이 (orderbook 전용, 선택)
    """

    channel: Channel
    scope: ChannelScope
    market: str | None = None
    depth: int | None = None

    def __post_init__(self) -> None:
        allowed = PUBLIC_CHANNELS if self.scope == ChannelScope.PUBLIC else PRIVATE_CHANNELS
        if self.channel not in allowed:
            raise ValueError(f"{self.channel.value} is not a {self.scope.value} channel")
        if self.scope == ChannelScope.PUBLIC and not self.market:
            raise ValueError(f"Public channel {self.channel.value} requires a market")
        if self.depth is not None and self.channel != Channel.ORDERBOOK:
            raise ValueError("depth applies to the orderbook channel only")

    # -------------------------------------------------------------------------
    # 생성 헬퍼
    # -------------------------------------------------------------------------

    @classmethod
    def orderbook(cls, market: str, depth: int | None = None) -> "ChannelSpec":
        return cls(Channel.ORDERBOOK, ChannelScope.PUBLIC, market.lower(), depth)

    @classmethod
    def trade(cls, market: str) -> "ChannelSpec":
        return cls(Channel.TRADE, ChannelScope.PUBLIC, market.lower())

    @classmethod
    def ticker(cls, market: str) -> "ChannelSpec":
        return cls(Channel.TICKER, ChannelScope.PUBLIC, market.lower())

    @classmethod
    def market_status(cls, market: str) -> "ChannelSpec":
        return cls(Channel.MARKET_STATUS, ChannelScope.PUBLIC, market.lower())

    @classmethod
    def private(cls, channel: Channel | str) -> "ChannelSpec":
        """private 채널 명세 (order, trade, account, trade_update)"""
        return cls(Channel(channel), ChannelScope.PRIVATE)

    # -------------------------------------------------------------------------
    # 직렬화
    # -------------------------------------------------------------------------

    @property
    def is_private(self) -> bool:
        return self.scope == ChannelScope.PRIVATE

    @property
    def key(self) -> str:
        """사람이 읽는 식별자 (예: trade:btcusdt, book:btcusdt:5, order)"""
        parts = [self.channel.value]
        if self.market is not None:
            parts.append(self.market)
        if self.depth is not None:
            parts.append(str(self.depth))
        return ":".join(parts)

    def to_wire(self) -> dict[str, Any]:
        """구독 요청의 subscriptions 항목"""
        wire: dict[str, Any] = {"channel": self.channel.value}
        if self.market is not None:
            wire["market"] = self.market
        if self.depth is not None:
            wire["depth"] = self.depth
        return wire

    def __str__(self) -> str:
        return self.key


class ChangeAction(str, Enum):
    """레지스트리 변경 종류"""

    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChannelChange:
    """레지스트리 변경 알림"""

    action: ChangeAction
    spec: ChannelSpec


ChangeListener = Callable[[ChannelChange], None]


class ChannelRegistry:
    """채널 구독 집합

    삽입 순서를 유지하는 집합. 모든 접근은 threading.Lock으로 보호되며,
    snapshot()은 락 안에서 만든 복사본을 반환.

    리스너는 실제로 집합이 바뀐 경우에만 락 밖에서 호출됨.
    """

    def __init__(self, specs: list[ChannelSpec] | tuple[ChannelSpec, ...] = ()):
        self._lock = threading.Lock()
        self._specs: dict[ChannelSpec, None] = dict.fromkeys(specs)
        self._listeners: list[ChangeListener] = []

    def add(self, spec: ChannelSpec) -> bool:
        """채널 추가 (이미 있으면 no-op)

        Returns:
            집합이 변경되었는지 여부
        """
        with self._lock:
            if spec in self._specs:
                return False
            self._specs[spec] = None
            listeners = list(self._listeners)

        logger.debug("Channel added", extra={"channel": spec.key})
        self._notify(listeners, ChannelChange(ChangeAction.ADDED, spec))
        return True

    def remove(self, spec: ChannelSpec) -> bool:
        """채널 제거 (없으면 no-op)

        Returns:
            집합이 변경되었는지 여부
        """
        with self._lock:
            if spec not in self._specs:
                return False
            del self._specs[spec]
            listeners = list(self._listeners)

        logger.debug("Channel removed", extra={"channel": spec.key})
        self._notify(listeners, ChannelChange(ChangeAction.REMOVED, spec))
        return True

    def snapshot(self) -> tuple[ChannelSpec, ...]:
        """현재 집합의 시점 복사본 (삽입 순서)"""
        with self._lock:
            return tuple(self._specs)

    def has_private(self) -> bool:
        """private 채널 포함 여부"""
        with self._lock:
            return any(spec.is_private for spec in self._specs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._specs)

    def __contains__(self, spec: object) -> bool:
        with self._lock:
            return spec in self._specs

    # -------------------------------------------------------------------------
    # 변경 리스너
    # -------------------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @staticmethod
    def _notify(listeners: list[ChangeListener], change: ChannelChange) -> None:
        for listener in listeners:
            listener(change)
