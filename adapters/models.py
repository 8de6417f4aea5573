"""
어댑터 공통 데이터 모델

MAX REST API 응답을 표준화한 모델.
모든 금액/수량은 Decimal, 시각은 UTC datetime 사용.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.types import OrderSide, OrderState, OrderType, TradeSide


@dataclass(frozen=True)
class Market:
    """마켓 정보

    Attributes:
        market_id: 마켓 ID (예: btctwd)
        name: 표시 이름 (예: BTC/TWD)
        base_unit: 기준 자산
        base_unit_precision: 기준 자산 소수 자릿수
        min_base_amount: 최소 주문 수량
        quote_unit: 호가 자산
        quote_unit_precision: 호가 자산 소수 자릿수
        min_quote_amount: 최소 주문 금액
    """

    market_id: str
    name: str
    base_unit: str
    base_unit_precision: int
    min_base_amount: Decimal
    quote_unit: str
    quote_unit_precision: int
    min_quote_amount: Decimal


@dataclass(frozen=True)
class Currency:
    """자산 정보"""

    currency_id: str
    precision: int
    sygna_supported: bool = False


@dataclass(frozen=True)
class Ticker:
    """마켓 시세

    Attributes:
        at: 시세 시각
        buy: 최우선 매수 호가
        sell: 최우선 매도 호가
        open/low/high/last: 24시간 시가/저가/고가/최근 체결가
        volume: 24시간 거래량
        volume_in_btc: 24시간 거래량 (BTC 환산)
    """

    at: datetime
    buy: Decimal | None
    sell: Decimal | None
    open: Decimal
    low: Decimal
    high: Decimal
    last: Decimal
    volume: Decimal
    volume_in_btc: Decimal | None = None

    @property
    def spread(self) -> Decimal | None:
        """매도 - 매수 호가 차이"""
        if self.buy is None or self.sell is None:
            return None
        return self.sell - self.buy


@dataclass(frozen=True)
class DepthLevel:
    """호가 1단계"""

    price: Decimal
    volume: Decimal


@dataclass(frozen=True)
class OrderBook:
    """호가 스냅샷 (REST)"""

    market: str
    timestamp: datetime
    asks: tuple[DepthLevel, ...]
    bids: tuple[DepthLevel, ...]
    last_update_version: int | None = None
    last_update_id: int | None = None

    @property
    def best_ask(self) -> DepthLevel | None:
        return min(self.asks, key=lambda level: level.price) if self.asks else None

    @property
    def best_bid(self) -> DepthLevel | None:
        return max(self.bids, key=lambda level: level.price) if self.bids else None


@dataclass(frozen=True)
class PublicTrade:
    """공개 체결 기록"""

    trade_id: int
    market: str
    price: Decimal | None
    volume: Decimal | None
    funds: Decimal | None
    side: TradeSide
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """계좌 잔고

    Attributes:
        currency: 자산 코드
        balance: 사용 가능 잔고
        locked: 주문 등으로 묶인 잔고
        wallet_type: 지갑 유형 (exchange, m 등)
    """

    currency: str
    balance: Decimal
    locked: Decimal
    wallet_type: str | None = None

    @property
    def total(self) -> Decimal:
        """총 잔고 (사용 가능 + 묶인 잔고)"""
        return self.balance + self.locked


@dataclass(frozen=True)
class Order:
    """주문 정보

    Attributes:
        order_id: 거래소 주문 ID
        client_oid: 클라이언트 주문 ID
        market: 마켓 ID
        side: 주문 방향
        ord_type: 주문 유형
        state: 주문 상태
        volume: 주문 수량
        remaining_volume: 미체결 수량
        executed_volume: 체결 수량
        price: 지정가
        stop_price: 트리거 가격
        avg_price: 평균 체결가
        trades_count: 체결 건수
        group_id: 주문 그룹 ID
        created_at: 생성 시각
        updated_at: 갱신 시각
    """

    order_id: int | None
    client_oid: str | None
    market: str
    side: OrderSide
    ord_type: OrderType
    state: OrderState
    volume: Decimal | None = None
    remaining_volume: Decimal | None = None
    executed_volume: Decimal | None = None
    price: Decimal | None = None
    stop_price: Decimal | None = None
    avg_price: Decimal | None = None
    trades_count: int | None = None
    group_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        """미체결 상태 여부 (wait, convert)"""
        return self.state in (OrderState.WAIT, OrderState.CONVERT)


@dataclass(frozen=True)
class Trade:
    """내 체결 기록"""

    trade_id: int
    order_id: int | None
    market: str
    side: str
    price: Decimal | None
    volume: Decimal | None
    funds: Decimal | None
    fee: Decimal | None
    fee_currency: str | None
    created_at: datetime


@dataclass(frozen=True)
class OrderRequest:
    """주문 요청

    Attributes:
        market: 마켓 ID
        side: 주문 방향
        volume: 주문 수량
        ord_type: 주문 유형
        price: 지정가 (limit 계열 필수)
        stop_price: 트리거 가격 (stop 계열 필수)
        client_oid: 클라이언트 주문 ID
        group_id: 주문 그룹 ID
    """

    market: str
    side: OrderSide
    volume: Decimal
    ord_type: OrderType = OrderType.LIMIT
    price: Decimal | None = None
    stop_price: Decimal | None = None
    client_oid: str | None = None
    group_id: int | None = None

    def __post_init__(self) -> None:
        if self.volume <= 0:
            raise ValueError("volume must be positive")
        if self.ord_type in (
            OrderType.LIMIT,
            OrderType.STOP_LIMIT,
            OrderType.POST_ONLY,
            OrderType.IOC_LIMIT,
        ) and self.price is None:
            raise ValueError(f"{self.ord_type.value} order requires price")
        if self.ord_type in (OrderType.STOP_LIMIT, OrderType.STOP_MARKET) and self.stop_price is None:
            raise ValueError(f"{self.ord_type.value} order requires stop_price")

    def to_params(self) -> list[tuple[str, Any]]:
        """요청 파라미터 (거래소 필드 순서, None은 서명 시 제외)"""
        return [
            ("market", self.market),
            ("side", self.side),
            ("volume", self.volume),
            ("price", self.price),
            ("client_oid", self.client_oid),
            ("stop_price", self.stop_price),
            ("ord_type", self.ord_type),
            ("group_id", self.group_id),
        ]
