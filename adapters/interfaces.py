"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, Sequence, runtime_checkable

from adapters.models import (
    Account,
    Currency,
    Market,
    Order,
    OrderBook,
    OrderRequest,
    PublicTrade,
    Ticker,
    Trade,
)
from core.types import OrderBy, OrderSide, OrderState


@runtime_checkable
class IWsTransport(Protocol):
    """WebSocket 전송 계층 인터페이스

    프레이밍, ping/pong, TLS는 구현체 책임.
    세션은 텍스트 프레임 송수신만 요구.
    """

    async def connect(self, url: str) -> None:
        """연결 수립

        Raises:
            TransportError: 연결 실패
        """
        ...

    async def send(self, text: str) -> None:
        """텍스트 프레임 1개 송신

        Raises:
            TransportClosed: 이미 종료된 연결
        """
        ...

    async def recv(self) -> str:
        """다음 텍스트 프레임 수신

        Raises:
            TransportClosed: 소켓 종료 또는 heartbeat 실패
        """
        ...

    async def close(self) -> None:
        """연결 종료 (이미 종료되었으면 no-op)"""
        ...


@runtime_checkable
class IExchangeRestClient(Protocol):
    """MAX REST API 클라이언트 인터페이스

    금액/수량은 반드시 Decimal 타입 사용.
    """

    # -------------------------------------------------------------------------
    # 공개 데이터
    # -------------------------------------------------------------------------

    async def get_timestamp(self) -> int:
        """서버 시각 (Unix epoch 초)"""
        ...

    async def get_markets(self) -> list[Market]:
        ...

    async def get_currencies(self) -> list[Currency]:
        ...

    async def get_tickers(self) -> dict[str, Ticker]:
        ...

    async def get_ticker(self, market: str) -> Ticker:
        ...

    async def get_depth(self, market: str, limit: int | None = None) -> OrderBook:
        ...

    async def get_public_trades(
        self,
        market: str,
        limit: int | None = None,
        order_by: OrderBy | None = None,
    ) -> list[PublicTrade]:
        ...

    # -------------------------------------------------------------------------
    # 계좌
    # -------------------------------------------------------------------------

    async def get_accounts(self) -> list[Account]:
        ...

    async def get_account(self, currency: str) -> Account:
        ...

    # -------------------------------------------------------------------------
    # 주문
    # -------------------------------------------------------------------------

    async def get_orders(
        self,
        market: str,
        states: Sequence[OrderState] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        ...

    async def get_order(
        self,
        order_id: int | None = None,
        client_oid: str | None = None,
    ) -> Order:
        ...

    async def place_order(self, request: OrderRequest) -> Order:
        """주문 생성

        Raises:
            ApiError: 주문 거부
        """
        ...

    async def cancel_order(
        self,
        order_id: int | None = None,
        client_oid: str | None = None,
    ) -> Order:
        ...

    async def cancel_orders(
        self,
        market: str | None = None,
        side: OrderSide | None = None,
        group_id: int | None = None,
    ) -> list[Order]:
        ...

    async def get_my_trades(
        self,
        market: str,
        limit: int | None = None,
        from_id: int | None = None,
    ) -> list[Trade]:
        ...

    async def close(self) -> None:
        ...
