"""
MAX REST API 클라이언트

RestInvoker 위에 엔드포인트별 메서드를 제공.
IExchangeRestClient Protocol 준수.
모든 금액/수량은 Decimal 타입으로 반환.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import httpx

from adapters.interfaces import IWsTransport
from adapters.max.channels import ChannelRegistry
from adapters.max.errors import ApiError
from adapters.max.invoker import RestInvoker
from adapters.max.models import (
    parse_account,
    parse_accounts,
    parse_currencies,
    parse_depth,
    parse_markets,
    parse_order,
    parse_orders,
    parse_public_trades,
    parse_ticker,
    parse_tickers,
    parse_timestamp,
    parse_trades,
)
from adapters.max.nonce import NonceSource
from adapters.max.signer import RequestSigner
from adapters.max.ws_session import EventCallback, StateChangeCallback, WsSession
from adapters.max.ws_transport import WebsocketsTransport
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
from core.config.loader import ClientConfig, load_client_config, load_credentials
from core.types import Credentials, OrderBy, OrderSide, OrderState

logger = logging.getLogger(__name__)


def _timestamp_seconds(value: datetime | None) -> int | None:
    return int(value.timestamp()) if value is not None else None


class MaxRestClient:
    """MAX REST API 클라이언트

    IExchangeRestClient Protocol 구현.
    인증 정보 없이 생성하면 공개 엔드포인트만 사용 가능.

    Args:
        credentials: API 인증 정보 (None이면 공개 API만)
        config: 엔드포인트/타임아웃 설정
        http_client: 주입할 httpx.AsyncClient
        nonce_source: nonce 생성기 (WebSocket 세션과 공유)
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        nonce_source: NonceSource | None = None,
    ):
        self.config = config or ClientConfig()
        self.signer = RequestSigner(credentials) if credentials is not None else None
        self.nonce_source = nonce_source or NonceSource()
        self.invoker = RestInvoker(
            base_url=self.config.rest_url,
            signer=self.signer,
            nonce_source=self.nonce_source,
            http_client=http_client,
            timeout=self.config.timeout,
        )

    @classmethod
    def from_secrets(cls, path: Path | None = None) -> "MaxRestClient":
        """secrets.yaml에서 인증 정보와 설정을 읽어 생성

        Raises:
            SecretsLoadError: 인증 정보 로드 실패
        """
        return cls(
            credentials=load_credentials(path),
            config=load_client_config(path),
        )

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        await self.invoker.close()

    async def __aenter__(self) -> "MaxRestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # 공개 데이터
    # -------------------------------------------------------------------------

    async def get_timestamp(self) -> int:
        """서버 시각 (Unix epoch 초)"""
        return await self.invoker.call("GET", "/api/v2/timestamp", decoder=parse_timestamp)

    async def get_markets(self) -> list[Market]:
        """거래 가능한 마켓 목록"""
        return await self.invoker.call("GET", "/api/v2/markets", decoder=parse_markets)

    async def get_currencies(self) -> list[Currency]:
        """지원 자산 목록"""
        return await self.invoker.call("GET", "/api/v2/currencies", decoder=parse_currencies)

    async def get_tickers(self) -> dict[str, Ticker]:
        """전체 마켓 시세 ({market: Ticker})"""
        return await self.invoker.call("GET", "/api/v2/tickers", decoder=parse_tickers)

    async def get_ticker(self, market: str) -> Ticker:
        """특정 마켓 시세"""
        return await self.invoker.call(
            "GET", f"/api/v2/tickers/{market}", decoder=parse_ticker
        )

    async def get_depth(
        self,
        market: str,
        limit: int | None = None,
        sort_by_price: bool = True,
    ) -> OrderBook:
        """호가 조회

        Args:
            market: 마켓 ID
            limit: 반환할 호가 단계 수 (None이면 서버 기본값)
            sort_by_price: 가격순 정렬 여부
        """
        return await self.invoker.call(
            "GET",
            "/api/v2/depth",
            params=[
                ("market", market),
                ("limit", limit),
                ("sort_by_price", sort_by_price),
            ],
            decoder=lambda data: parse_depth(market, data),
        )

    async def get_public_trades(
        self,
        market: str,
        limit: int | None = None,
        order_by: OrderBy | None = None,
        before: datetime | None = None,
        from_id: int | None = None,
        to_id: int | None = None,
    ) -> list[PublicTrade]:
        """최근 공개 체결 조회 (기본: 최신순)"""
        return await self.invoker.call(
            "GET",
            "/api/v2/trades",
            params=[
                ("market", market),
                ("timestamp", _timestamp_seconds(before)),
                ("from", from_id),
                ("to", to_id),
                ("order_by", order_by),
                ("limit", limit),
            ],
            decoder=parse_public_trades,
        )

    # -------------------------------------------------------------------------
    # 계좌 조회
    # -------------------------------------------------------------------------

    async def get_accounts(self) -> list[Account]:
        """전체 자산 잔고 조회"""
        return await self.invoker.call(
            "GET", "/api/v2/members/accounts", requires_auth=True, decoder=parse_accounts
        )

    async def get_account(self, currency: str) -> Account:
        """특정 자산 잔고 조회"""
        return await self.invoker.call(
            "GET",
            f"/api/v2/members/accounts/{currency.lower()}",
            requires_auth=True,
            decoder=parse_account,
        )

    async def get_profile(self) -> dict[str, Any]:
        """회원 정보 및 계좌 조회 (응답 JSON 그대로)"""
        return await self.invoker.call("GET", "/api/v2/members/me", requires_auth=True)

    # -------------------------------------------------------------------------
    # 주문 조회
    # -------------------------------------------------------------------------

    async def get_orders(
        self,
        market: str,
        states: Sequence[OrderState] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
        group_id: int | None = None,
    ) -> list[Order]:
        """주문 목록 조회

        Args:
            market: 마켓 ID
            states: 조회할 주문 상태 (None이면 서버 기본값: wait, convert)
            order_by: 정렬 순서
            limit: 최대 개수
            group_id: 주문 그룹 ID
        """
        return await self.invoker.call(
            "GET",
            "/api/v2/orders",
            params=[
                ("market", market),
                ("state", list(states) if states else None),
                ("order_by", order_by),
                ("group_id", group_id),
                ("limit", limit),
            ],
            requires_auth=True,
            decoder=parse_orders,
        )

    async def get_order(
        self,
        order_id: int | None = None,
        client_oid: str | None = None,
    ) -> Order:
        """특정 주문 조회 (order_id 또는 client_oid)"""
        return await self.invoker.call(
            "GET",
            "/api/v2/order",
            params=_order_identity(order_id, client_oid),
            requires_auth=True,
            decoder=parse_order,
        )

    async def get_my_trades(
        self,
        market: str,
        limit: int | None = None,
        from_id: int | None = None,
        to_id: int | None = None,
        before: datetime | None = None,
        order_by: OrderBy | None = None,
    ) -> list[Trade]:
        """내 체결 내역 조회"""
        return await self.invoker.call(
            "GET",
            "/api/v2/trades/my",
            params=[
                ("market", market),
                ("timestamp", _timestamp_seconds(before)),
                ("from", from_id),
                ("to", to_id),
                ("order_by", order_by),
                ("limit", limit),
            ],
            requires_auth=True,
            decoder=parse_trades,
        )

    # -------------------------------------------------------------------------
    # 주문 실행
    # -------------------------------------------------------------------------

    async def place_order(self, request: OrderRequest) -> Order:
        """주문 생성

        Raises:
            ApiError: 주문 거부
        """
        try:
            order = await self.invoker.call(
                "POST",
                "/api/v2/orders",
                params=request.to_params(),
                requires_auth=True,
                decoder=parse_order,
            )
        except ApiError as e:
            logger.error(
                "주문 생성 실패",
                extra={
                    "error_code": e.code,
                    "error_message": e.message,
                    "market": request.market,
                    "client_oid": request.client_oid,
                },
            )
            raise

        logger.info(
            "주문 생성 완료",
            extra={
                "order_id": order.order_id,
                "client_oid": order.client_oid,
                "market": order.market,
                "side": order.side.value,
                "type": order.ord_type.value,
                "volume": str(order.volume),
            },
        )
        return order

    async def cancel_order(
        self,
        order_id: int | None = None,
        client_oid: str | None = None,
    ) -> Order:
        """주문 취소 (order_id 또는 client_oid)"""
        try:
            order = await self.invoker.call(
                "POST",
                "/api/v2/order/delete",
                params=_order_identity(order_id, client_oid),
                requires_auth=True,
                decoder=parse_order,
            )
        except ApiError as e:
            logger.error(
                "주문 취소 실패",
                extra={
                    "error_code": e.code,
                    "error_message": e.message,
                    "order_id": order_id,
                    "client_oid": client_oid,
                },
            )
            raise

        logger.info(
            "주문 취소 완료",
            extra={"order_id": order.order_id, "client_oid": order.client_oid},
        )
        return order

    async def cancel_orders(
        self,
        market: str | None = None,
        side: OrderSide | None = None,
        group_id: int | None = None,
    ) -> list[Order]:
        """조건에 맞는 모든 주문 취소

        Returns:
            취소된 주문 목록
        """
        orders = await self.invoker.call(
            "POST",
            "/api/v2/orders/clear",
            params=[("market", market), ("side", side), ("group_id", group_id)],
            requires_auth=True,
            decoder=parse_orders,
        )
        logger.info(
            "주문 일괄 취소 완료",
            extra={"market": market, "count": len(orders)},
        )
        return orders

    # -------------------------------------------------------------------------
    # WebSocket 세션
    # -------------------------------------------------------------------------

    def ws_session(
        self,
        transport: IWsTransport | None = None,
        registry: ChannelRegistry | None = None,
        on_event: EventCallback | None = None,
        on_state_change: StateChangeCallback | None = None,
        request_id: str = "",
    ) -> WsSession:
        """서명기와 nonce 생성기를 공유하는 WebSocket 세션 생성

        Args:
            transport: 전송 계층 (None이면 websockets 기반)
            registry: 채널 레지스트리 (None이면 새로 생성)
            on_event: 이벤트 발행 콜백
            on_state_change: 상태 변경 콜백
            request_id: 요청 프레임의 id 필드
        """
        return WsSession(
            transport=transport or WebsocketsTransport(),
            signer=self.signer,
            registry=registry,
            nonce_source=self.nonce_source,
            url=self.config.ws_url,
            request_id=request_id,
            on_event=on_event,
            on_state_change=on_state_change,
        )


def _order_identity(order_id: int | None, client_oid: str | None) -> list[tuple[str, Any]]:
    """주문 식별 파라미터 (id 우선)"""
    if order_id is not None:
        return [("id", order_id)]
    if client_oid:
        return [("client_oid", client_oid)]
    raise ValueError("order_id or client_oid required")
