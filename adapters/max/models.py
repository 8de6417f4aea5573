"""
MAX API 응답 -> 공통 모델 변환

MAX REST API 응답을 adapters.models의 표준 모델로 변환.
모든 금액/수량은 문자열에서 Decimal로 변환.
필수 필드 누락/형식 오류는 KeyError/TypeError/ValueError로 드러나며
RestInvoker가 DecodeError로 분류.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from adapters.models import (
    Account,
    Currency,
    DepthLevel,
    Market,
    Order,
    OrderBook,
    PublicTrade,
    Ticker,
    Trade,
)
from core.types import OrderSide, OrderState, OrderType, TradeSide


def _decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise TypeError(f"Expected a number, got {value!r}")
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return _decimal(value)


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _seconds(value: Any) -> datetime:
    """초 타임스탬프 → datetime (UTC)"""
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _millis(value: Any) -> datetime:
    """밀리초 타임스탬프 → datetime (UTC)"""
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _created_at(data: dict[str, Any], field: str = "created_at") -> datetime | None:
    """밀리초 필드 우선, 없으면 초 필드 사용"""
    millis = data.get(f"{field}_in_ms")
    if millis is not None:
        return _millis(millis)
    seconds = data.get(field)
    if seconds is not None:
        return _seconds(seconds)
    return None


def _list(data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise TypeError(f"Expected a list, got {type(data).__name__}")
    return data


# -----------------------------------------------------------------------------
# 공개 데이터
# -----------------------------------------------------------------------------


def parse_timestamp(data: Any) -> int:
    """GET /api/v2/timestamp 응답 (정수 초)"""
    if isinstance(data, bool):
        raise TypeError("timestamp must be an integer")
    return int(data)


def parse_market(data: dict[str, Any]) -> Market:
    """MAX 마켓 응답 -> Market 모델

    GET /api/v2/markets 응답 항목 예시:
    {
        "id": "btctwd",
        "name": "BTC/TWD",
        "base_unit": "btc",
        "base_unit_precision": 8,
        "min_base_amount": 0.0004,
        "quote_unit": "twd",
        "quote_unit_precision": 1,
        "min_quote_amount": 250.0
    }
    """
    return Market(
        market_id=data["id"],
        name=data.get("name", data["id"]),
        base_unit=data["base_unit"],
        base_unit_precision=int(data["base_unit_precision"]),
        min_base_amount=_decimal(data["min_base_amount"]),
        quote_unit=data["quote_unit"],
        quote_unit_precision=int(data["quote_unit_precision"]),
        min_quote_amount=_decimal(data["min_quote_amount"]),
    )


def parse_markets(data: Any) -> list[Market]:
    return [parse_market(item) for item in _list(data)]


def parse_currency(data: dict[str, Any]) -> Currency:
    """GET /api/v2/currencies 응답 항목 -> Currency 모델"""
    return Currency(
        currency_id=data["id"],
        precision=int(data["precision"]),
        sygna_supported=bool(data.get("sygna_supported", False)),
    )


def parse_currencies(data: Any) -> list[Currency]:
    return [parse_currency(item) for item in _list(data)]


def parse_ticker(data: dict[str, Any]) -> Ticker:
    """MAX 시세 응답 -> Ticker 모델

    GET /api/v2/tickers/{market} 응답 예시:
    {
        "at": 1649742406,
        "buy": "1234000.0",
        "sell": "1235000.0",
        "open": "1200000.0",
        "low": "1190000.0",
        "high": "1250000.0",
        "last": "1234500.0",
        "vol": "12.34",
        "vol_in_btc": "12.34"
    }
    """
    return Ticker(
        at=_seconds(data["at"]),
        buy=_optional_decimal(data.get("buy")),
        sell=_optional_decimal(data.get("sell")),
        open=_decimal(data["open"]),
        low=_decimal(data["low"]),
        high=_decimal(data["high"]),
        last=_decimal(data["last"]),
        volume=_decimal(data["vol"]),
        volume_in_btc=_optional_decimal(data.get("vol_in_btc")),
    )


def parse_tickers(data: Any) -> dict[str, Ticker]:
    """GET /api/v2/tickers 응답 ({market: ticker}) -> dict"""
    if not isinstance(data, dict):
        raise TypeError("tickers response must be an object")
    return {market: parse_ticker(item) for market, item in data.items()}


def parse_depth_level(item: Any) -> DepthLevel:
    """호가 항목 (["price", "volume"] 또는 {"price", "volume"})"""
    if isinstance(item, dict):
        return DepthLevel(price=_decimal(item["price"]), volume=_decimal(item["volume"]))
    price, volume = item
    return DepthLevel(price=_decimal(price), volume=_decimal(volume))


def parse_depth(market: str, data: dict[str, Any]) -> OrderBook:
    """GET /api/v2/depth 응답 -> OrderBook 모델"""
    return OrderBook(
        market=market,
        timestamp=_seconds(data["timestamp"]),
        asks=tuple(parse_depth_level(item) for item in _list(data["asks"])),
        bids=tuple(parse_depth_level(item) for item in _list(data["bids"])),
        last_update_version=_optional_int(data.get("last_update_version")),
        last_update_id=_optional_int(data.get("last_update_id")),
    )


def parse_trade_side(value: Any) -> TradeSide:
    try:
        return TradeSide(value)
    except ValueError:
        return TradeSide.UNKNOWN


def parse_public_trade(data: dict[str, Any]) -> PublicTrade:
    """GET /api/v2/trades 응답 항목 -> PublicTrade 모델"""
    created_at = _created_at(data)
    if created_at is None:
        raise KeyError("created_at")
    return PublicTrade(
        trade_id=int(data["id"]),
        market=data["market"],
        price=_optional_decimal(data.get("price")),
        volume=_optional_decimal(data.get("volume")),
        funds=_optional_decimal(data.get("funds")),
        side=parse_trade_side(data.get("side")),
        created_at=created_at,
    )


def parse_public_trades(data: Any) -> list[PublicTrade]:
    return [parse_public_trade(item) for item in _list(data)]


# -----------------------------------------------------------------------------
# 계좌
# -----------------------------------------------------------------------------


def parse_account(data: dict[str, Any]) -> Account:
    """MAX 계좌 응답 -> Account 모델

    GET /api/v2/members/accounts/{currency} 응답 예시:
    {
        "currency": "twd",
        "balance": "1000.0",
        "locked": "0.0",
        "type": "exchange"
    }
    """
    return Account(
        currency=data["currency"],
        balance=_decimal(data["balance"]),
        locked=_decimal(data["locked"]),
        wallet_type=data.get("type"),
    )


def parse_accounts(data: Any) -> list[Account]:
    return [parse_account(item) for item in _list(data)]


# -----------------------------------------------------------------------------
# 주문 / 체결
# -----------------------------------------------------------------------------


def parse_order(data: dict[str, Any]) -> Order:
    """MAX 주문 응답 -> Order 모델

    POST /api/v2/orders 응답 예시:
    {
        "id": 87,
        "client_oid": "my-order-1",
        "side": "buy",
        "ord_type": "limit",
        "price": "21499.0",
        "stop_price": null,
        "avg_price": "0.0",
        "state": "wait",
        "market": "ethtwd",
        "created_at": 1521726960,
        "created_at_in_ms": 1521726960357,
        "volume": "0.2658",
        "remaining_volume": "0.2658",
        "executed_volume": "0.0",
        "trades_count": 0,
        "group_id": null
    }
    """
    return Order(
        order_id=_optional_int(data.get("id")),
        client_oid=data.get("client_oid") or None,
        market=data["market"],
        side=OrderSide(data["side"]),
        ord_type=OrderType(data["ord_type"]),
        state=OrderState(data["state"]),
        volume=_optional_decimal(data.get("volume")),
        remaining_volume=_optional_decimal(data.get("remaining_volume")),
        executed_volume=_optional_decimal(data.get("executed_volume")),
        price=_optional_decimal(data.get("price")),
        stop_price=_optional_decimal(data.get("stop_price")),
        avg_price=_optional_decimal(data.get("avg_price")),
        trades_count=_optional_int(data.get("trades_count")),
        group_id=_optional_int(data.get("group_id")),
        created_at=_created_at(data),
        updated_at=_created_at(data, "updated_at"),
    )


def parse_orders(data: Any) -> list[Order]:
    return [parse_order(item) for item in _list(data)]


def parse_trade(data: dict[str, Any]) -> Trade:
    """GET /api/v2/trades/my 응답 항목 -> Trade 모델"""
    created_at = _created_at(data)
    if created_at is None:
        raise KeyError("created_at")
    return Trade(
        trade_id=int(data["id"]),
        order_id=_optional_int(data.get("order_id")),
        market=data["market"],
        side=str(data.get("side", "")),
        price=_optional_decimal(data.get("price")),
        volume=_optional_decimal(data.get("volume")),
        funds=_optional_decimal(data.get("funds")),
        fee=_optional_decimal(data.get("fee")),
        fee_currency=data.get("fee_currency"),
        created_at=created_at,
    )


def parse_trades(data: Any) -> list[Trade]:
    return [parse_trade(item) for item in _list(data)]
