"""
WebSocket 수신 프레임 디스패처

판별자 필드로 프레임 종류를 결정한 뒤 해당 형태로만 디코딩.
- E 배열: 에러 프레임
- e: subscribed / unsubscribed / authenticated
- c: book / trade / ticker / market_status / user(order_*, trade_*, account_*)

알 수 없는 판별자는 UnknownEvent, 형식 오류는 DecodeErrorEvent.
dispatch()는 예외를 발생시키지 않음 (프레임 하나의 실패가 스트림을 끊지 않음).
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from adapters.max.events import (
    AccountUpdateEvent,
    BalanceRecord,
    DecodeErrorEvent,
    FillRecord,
    InboundEvent,
    MarketStatusEvent,
    MarketStatusRecord,
    OrderBookDiffEvent,
    OrderBookSnapshotEvent,
    OrderRecord,
    OrderUpdateEvent,
    PriceLevel,
    SubscriptionAckEvent,
    SubscriptionErrorEvent,
    AuthResultEvent,
    TickerEvent,
    TickerRecord,
    TradeEvent,
    TradeRecord,
    TradeUpdateEvent,
    UnknownEvent,
)

logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """인식된 프레임의 페이로드 형식 오류"""
    pass


# 페이로드 디코딩 중 형식 오류로 간주하는 예외
PAYLOAD_EXCEPTIONS = (KeyError, TypeError, ValueError, ArithmeticError, IndexError, OSError)


# -----------------------------------------------------------------------------
# 값 변환
# -----------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal:
    """문자열/숫자 → Decimal (float 오차 방지를 위해 str 경유)"""
    if value is None or isinstance(value, bool):
        raise PayloadError(f"Expected a number, got {value!r}")
    return Decimal(str(value))


def to_optional_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return to_decimal(value)


def ms_to_datetime(timestamp_ms: Any) -> datetime:
    """밀리초 타임스탬프 → datetime (UTC)"""
    if isinstance(timestamp_ms, bool):
        raise PayloadError(f"Expected a timestamp, got {timestamp_ms!r}")
    return datetime.fromtimestamp(int(timestamp_ms) / 1000, tz=timezone.utc)


def _records(data: dict[str, Any], field: str) -> list[Any]:
    value = data[field]
    if not isinstance(value, list):
        raise PayloadError(f"'{field}' must be a list")
    return value


def _public_snapshot(event: Any) -> bool:
    """public 피드 e 값 → 스냅샷 여부"""
    value = str(event).lower()
    if value == "snapshot":
        return True
    if value == "update":
        return False
    raise PayloadError(f"Unexpected public feed type: {event!r}")


def _private_snapshot(event: str) -> bool:
    """private 피드 e 값 (예: order_snapshot) → 스냅샷 여부"""
    value = event.lower()
    if value.endswith("_snapshot"):
        return True
    if value.endswith("_update"):
        return False
    raise PayloadError(f"Unexpected private feed type: {event!r}")


# -----------------------------------------------------------------------------
# 레코드 파싱
# -----------------------------------------------------------------------------


def _parse_level(item: Any) -> PriceLevel:
    if not isinstance(item, (list, tuple)) or len(item) != 2:
        raise PayloadError(f"Price level must be [price, volume]: {item!r}")
    return PriceLevel(price=to_decimal(item[0]), volume=to_decimal(item[1]))


def _parse_trade(item: dict[str, Any]) -> TradeRecord:
    return TradeRecord(
        price=to_decimal(item["p"]),
        volume=to_decimal(item["v"]),
        created_at=ms_to_datetime(item["T"]),
        trend=str(item.get("tr", "")),
    )


def _parse_ticker(item: dict[str, Any]) -> TickerRecord:
    return TickerRecord(
        open=to_decimal(item["O"]),
        high=to_decimal(item["H"]),
        low=to_decimal(item["L"]),
        close=to_decimal(item["C"]),
        volume=to_decimal(item["v"]),
    )


def _parse_market_status(item: dict[str, Any]) -> MarketStatusRecord:
    return MarketStatusRecord(
        market=str(item["M"]),
        status=str(item["st"]),
        base_unit=str(item["bu"]),
        base_unit_precision=int(item["bup"]),
        min_base_amount=to_decimal(item["mba"]),
        quote_unit=str(item["qu"]),
        quote_unit_precision=int(item["qup"]),
        min_quote_amount=to_decimal(item["mqa"]),
        m_wallet_supported=bool(item["mws"]),
    )


def _parse_order(item: dict[str, Any]) -> OrderRecord:
    trade_count = item.get("tc")
    group_id = item.get("gi")
    client_oid = item.get("ci")
    return OrderRecord(
        order_id=int(item["i"]),
        side=str(item["sd"]),
        ord_type=str(item["ot"]),
        price=to_optional_decimal(item.get("p")),
        stop_price=to_optional_decimal(item.get("sp")),
        avg_price=to_optional_decimal(item.get("ap")),
        state=str(item["S"]),
        market=str(item["M"]),
        created_at=ms_to_datetime(item["T"]),
        volume=to_decimal(item["v"]),
        remaining_volume=to_optional_decimal(item.get("rv")),
        executed_volume=to_optional_decimal(item.get("ev")),
        trade_count=int(trade_count) if trade_count is not None else None,
        client_oid=str(client_oid) if client_oid else None,
        group_id=int(group_id) if group_id is not None else None,
    )


def _parse_fill(item: dict[str, Any]) -> FillRecord:
    return FillRecord(
        trade_id=int(item["i"]),
        side=str(item["sd"]),
        price=to_decimal(item["p"]),
        volume=to_decimal(item["v"]),
        market=str(item["M"]),
        created_at=ms_to_datetime(item["T"]),
        fee=to_decimal(item["f"]),
        fee_currency=str(item["fc"]),
        is_maker=bool(item["m"]),
    )


def _parse_balance(item: dict[str, Any]) -> BalanceRecord:
    return BalanceRecord(
        currency=str(item["cu"]),
        available=to_decimal(item["av"]),
        locked=to_decimal(item["l"]),
    )


# -----------------------------------------------------------------------------
# 프레임 디코더
# -----------------------------------------------------------------------------


def _decode_error_frame(data: dict[str, Any]) -> InboundEvent:
    return SubscriptionErrorEvent(
        messages=tuple(str(message) for message in data["E"]),
        request_id=str(data.get("i", "")),
        time=ms_to_datetime(data["T"]),
    )


def _decode_sub_ack(data: dict[str, Any]) -> InboundEvent:
    channels = _records(data, "s")
    if not all(isinstance(item, dict) for item in channels):
        raise PayloadError("'s' must be a list of channel objects")
    return SubscriptionAckEvent(
        subscribed=data["e"] == "subscribed",
        channels=tuple(channels),
        request_id=str(data.get("i", "")),
        time=ms_to_datetime(data["T"]),
    )


def _decode_auth_result(data: dict[str, Any]) -> InboundEvent:
    return AuthResultEvent(
        request_id=str(data.get("i", "")),
        time=ms_to_datetime(data["T"]),
    )


def _decode_book(data: dict[str, Any]) -> InboundEvent:
    is_snapshot = _public_snapshot(data["e"])
    event_cls = OrderBookSnapshotEvent if is_snapshot else OrderBookDiffEvent
    return event_cls(
        market=str(data["M"]),
        asks=tuple(_parse_level(item) for item in _records(data, "a")),
        bids=tuple(_parse_level(item) for item in _records(data, "b")),
        time=ms_to_datetime(data["T"]),
    )


def _decode_trade(data: dict[str, Any]) -> InboundEvent:
    return TradeEvent(
        market=str(data["M"]),
        trades=tuple(_parse_trade(item) for item in _records(data, "t")),
        time=ms_to_datetime(data["T"]),
        is_snapshot=_public_snapshot(data["e"]),
    )


def _decode_ticker(data: dict[str, Any]) -> InboundEvent:
    return TickerEvent(
        market=str(data["M"]),
        ticker=_parse_ticker(data["tk"]),
        time=ms_to_datetime(data["T"]),
        is_snapshot=_public_snapshot(data["e"]),
    )


def _decode_market_status(data: dict[str, Any]) -> InboundEvent:
    timestamp = data.get("T")
    return MarketStatusEvent(
        markets=tuple(_parse_market_status(item) for item in _records(data, "ms")),
        is_snapshot=_public_snapshot(data["e"]),
        time=ms_to_datetime(timestamp) if timestamp is not None else None,
    )


def _decode_user_orders(data: dict[str, Any]) -> InboundEvent:
    return OrderUpdateEvent(
        orders=tuple(_parse_order(item) for item in _records(data, "o")),
        time=ms_to_datetime(data["T"]),
        is_snapshot=_private_snapshot(data["e"]),
    )


def _decode_user_trades(data: dict[str, Any]) -> InboundEvent:
    return TradeUpdateEvent(
        trades=tuple(_parse_fill(item) for item in _records(data, "t")),
        time=ms_to_datetime(data["T"]),
        is_snapshot=_private_snapshot(data["e"]),
    )


def _decode_user_balances(data: dict[str, Any]) -> InboundEvent:
    return AccountUpdateEvent(
        balances=tuple(_parse_balance(item) for item in _records(data, "B")),
        time=ms_to_datetime(data["T"]),
        is_snapshot=_private_snapshot(data["e"]),
    )


FrameDecoder = Callable[[dict[str, Any]], InboundEvent]

# e 값으로 판별하는 응답 프레임
RESPONSE_DECODERS: dict[str, FrameDecoder] = {
    "subscribed": _decode_sub_ack,
    "unsubscribed": _decode_sub_ack,
    "authenticated": _decode_auth_result,
}

# c 값으로 판별하는 public 피드
PUBLIC_DECODERS: dict[str, FrameDecoder] = {
    "book": _decode_book,
    "trade": _decode_trade,
    "ticker": _decode_ticker,
    "market_status": _decode_market_status,
}

# c == "user"일 때 e 접두사로 판별하는 private 피드
PRIVATE_DECODERS: tuple[tuple[str, FrameDecoder], ...] = (
    ("order_", _decode_user_orders),
    ("trade_", _decode_user_trades),
    ("account_", _decode_user_balances),
)


class MessageDispatcher:
    """수신 프레임 → InboundEvent 변환기

    상태 없음. WsSession의 수신 루프에서 프레임마다 호출.
    """

    def select(self, data: dict[str, Any]) -> FrameDecoder | None:
        """판별자로 디코더 선택 (없으면 None)"""
        if isinstance(data.get("E"), list):
            return _decode_error_frame

        event = data.get("e")
        channel = data.get("c")

        if isinstance(event, str) and event in RESPONSE_DECODERS:
            return RESPONSE_DECODERS[event]

        if not isinstance(channel, str):
            return None

        if channel == "user":
            if not isinstance(event, str):
                return None
            for prefix, decoder in PRIVATE_DECODERS:
                if event.startswith(prefix):
                    return decoder
            return None

        return PUBLIC_DECODERS.get(channel)

    def dispatch(self, raw: str | bytes) -> InboundEvent:
        """프레임 1개 디코딩

        Args:
            raw: 수신한 텍스트 프레임

        Returns:
            InboundEvent (실패 시 DecodeErrorEvent / UnknownEvent)
        """
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            # RecursionError: 중첩이 너무 깊은 배열/객체
            logger.warning(
                "메시지 파싱 실패",
                extra={"error": str(e), "frame": text[:100]},
            )
            return DecodeErrorEvent(error=f"Invalid JSON: {e}", raw=text)

        if not isinstance(data, dict):
            logger.warning("JSON 객체가 아닌 프레임", extra={"frame": text[:100]})
            return DecodeErrorEvent(error="Frame is not a JSON object", raw=text)

        decoder = self.select(data)
        if decoder is None:
            logger.debug(
                "알 수 없는 프레임",
                extra={"event": data.get("e"), "channel": data.get("c")},
            )
            return UnknownEvent(
                event=data.get("e") if isinstance(data.get("e"), str) else None,
                channel=data.get("c") if isinstance(data.get("c"), str) else None,
                payload=data,
            )

        try:
            return decoder(data)
        except PAYLOAD_EXCEPTIONS as e:
            logger.warning(
                "프레임 페이로드 디코딩 실패",
                extra={"event": data.get("e"), "channel": data.get("c"), "error": repr(e)},
            )
            return DecodeErrorEvent(error=f"Malformed payload: {e!r}", raw=text)
