"""
WebSocket 수신 이벤트 모델

서버 프레임을 디코딩한 결과. 모든 이벤트는 불변이며 소비자에게 전달된 후 보관하지 않음.
금액/수량은 Decimal, 시각은 UTC datetime.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from adapters.max.errors import AuthError


# =============================================================================
# 레코드
# =============================================================================


@dataclass(frozen=True)
class PriceLevel:
    """호가 1단계 (가격, 수량)"""

    price: Decimal
    volume: Decimal


@dataclass(frozen=True)
class TradeRecord:
    """공개 체결 1건

    trend: 직전 체결 대비 방향 (up / down)
    """

    price: Decimal
    volume: Decimal
    created_at: datetime
    trend: str


@dataclass(frozen=True)
class TickerRecord:
    """24시간 시세"""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


@dataclass(frozen=True)
class MarketStatusRecord:
    """마켓 상태"""

    market: str
    status: str
    base_unit: str
    base_unit_precision: int
    min_base_amount: Decimal
    quote_unit: str
    quote_unit_precision: int
    min_quote_amount: Decimal
    m_wallet_supported: bool


@dataclass(frozen=True)
class OrderRecord:
    """내 주문 변경 1건"""

    order_id: int
    side: str
    ord_type: str
    price: Decimal | None
    stop_price: Decimal | None
    avg_price: Decimal | None
    state: str
    market: str
    created_at: datetime
    volume: Decimal
    remaining_volume: Decimal | None
    executed_volume: Decimal | None
    trade_count: int | None
    client_oid: str | None
    group_id: int | None


@dataclass(frozen=True)
class FillRecord:
    """내 체결 1건"""

    trade_id: int
    side: str
    price: Decimal
    volume: Decimal
    market: str
    created_at: datetime
    fee: Decimal
    fee_currency: str
    is_maker: bool


@dataclass(frozen=True)
class BalanceRecord:
    """잔고 변경 1건"""

    currency: str
    available: Decimal
    locked: Decimal


# =============================================================================
# 이벤트
# =============================================================================


@dataclass(frozen=True)
class InboundEvent:
    """수신 이벤트 기본 클래스"""


@dataclass(frozen=True)
class TickerEvent(InboundEvent):
    market: str
    ticker: TickerRecord
    time: datetime
    is_snapshot: bool


@dataclass(frozen=True)
class TradeEvent(InboundEvent):
    market: str
    trades: tuple[TradeRecord, ...]
    time: datetime
    is_snapshot: bool


@dataclass(frozen=True)
class OrderBookSnapshotEvent(InboundEvent):
    """호가 전체 스냅샷"""

    market: str
    asks: tuple[PriceLevel, ...]
    bids: tuple[PriceLevel, ...]
    time: datetime


@dataclass(frozen=True)
class OrderBookDiffEvent(InboundEvent):
    """호가 증분 변경 (수량 0은 해당 가격 삭제)"""

    market: str
    asks: tuple[PriceLevel, ...]
    bids: tuple[PriceLevel, ...]
    time: datetime


@dataclass(frozen=True)
class MarketStatusEvent(InboundEvent):
    markets: tuple[MarketStatusRecord, ...]
    is_snapshot: bool
    time: datetime | None = None


@dataclass(frozen=True)
class OrderUpdateEvent(InboundEvent):
    orders: tuple[OrderRecord, ...]
    time: datetime
    is_snapshot: bool


@dataclass(frozen=True)
class TradeUpdateEvent(InboundEvent):
    trades: tuple[FillRecord, ...]
    time: datetime
    is_snapshot: bool


@dataclass(frozen=True)
class AccountUpdateEvent(InboundEvent):
    balances: tuple[BalanceRecord, ...]
    time: datetime
    is_snapshot: bool


@dataclass(frozen=True)
class SubscriptionAckEvent(InboundEvent):
    """구독/구독 해제 응답

    subscribed: True면 구독 응답, False면 해제 응답
    """

    subscribed: bool
    channels: tuple[dict[str, Any], ...]
    request_id: str
    time: datetime


@dataclass(frozen=True)
class SubscriptionErrorEvent(InboundEvent):
    """서버 에러 프레임 (E 배열)"""

    messages: tuple[str, ...]
    request_id: str
    time: datetime


@dataclass(frozen=True)
class AuthResultEvent(InboundEvent):
    """인증 성공 응답"""

    request_id: str
    time: datetime


@dataclass(frozen=True)
class AuthErrorEvent(InboundEvent):
    """인증 거부 (세션이 AUTHENTICATING 중 에러 프레임 수신)"""

    messages: tuple[str, ...]
    request_id: str = ""
    time: datetime | None = None

    def to_error(self) -> AuthError:
        return AuthError(self.messages)


@dataclass(frozen=True)
class DecodeErrorEvent(InboundEvent):
    """프레임 디코딩 실패 (스트림은 계속 진행)"""

    error: str
    raw: str


@dataclass(frozen=True)
class UnknownEvent(InboundEvent):
    """알 수 없는 판별자 (서버 측 프로토콜 추가 대비)"""

    event: str | None
    channel: str | None
    payload: dict[str, Any]
