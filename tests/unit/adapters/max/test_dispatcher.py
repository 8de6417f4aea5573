"""
MessageDispatcher 테스트

판별자 기반 디코딩, 알 수 없는 프레임, 형식 오류 처리 검증.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from adapters.max.dispatcher import MessageDispatcher, ms_to_datetime, to_decimal
from adapters.max.events import (
    AccountUpdateEvent,
    AuthResultEvent,
    DecodeErrorEvent,
    MarketStatusEvent,
    OrderBookDiffEvent,
    OrderBookSnapshotEvent,
    OrderUpdateEvent,
    SubscriptionAckEvent,
    SubscriptionErrorEvent,
    TickerEvent,
    TradeEvent,
    TradeUpdateEvent,
    UnknownEvent,
)


@pytest.fixture
def dispatcher() -> MessageDispatcher:
    return MessageDispatcher()


def _raw(frame: dict[str, Any]) -> str:
    return json.dumps(frame)


class TestValueConversion:
    """값 변환 헬퍼 테스트"""

    def test_to_decimal_from_string(self) -> None:
        """문자열 → Decimal (정밀도 유지)"""
        assert to_decimal("0.1") == Decimal("0.1")

    def test_to_decimal_rejects_none(self) -> None:
        """None은 형식 오류"""
        with pytest.raises(ValueError):
            to_decimal(None)

    def test_ms_to_datetime(self) -> None:
        """밀리초 → UTC datetime"""
        assert ms_to_datetime(1678092207000) == datetime(2023, 3, 6, 8, 43, 27, tzinfo=timezone.utc)


class TestResponseFrames:
    """응답 프레임 디코딩 테스트"""

    def test_error_frame(self, dispatcher: MessageDispatcher, error_frame: dict) -> None:
        """E 배열은 에러 이벤트"""
        event = dispatcher.dispatch(_raw(error_frame))

        assert isinstance(event, SubscriptionErrorEvent)
        assert event.messages == ("invalid signature",)
        assert event.request_id == "client1"

    def test_subscribed(self, dispatcher: MessageDispatcher, sub_ack_frame: dict) -> None:
        """구독 응답"""
        event = dispatcher.dispatch(_raw(sub_ack_frame))

        assert isinstance(event, SubscriptionAckEvent)
        assert event.subscribed is True
        assert event.channels == ({"channel": "trade", "market": "btcusdt"},)

    def test_unsubscribed(self, dispatcher: MessageDispatcher, sub_ack_frame: dict) -> None:
        """구독 해제 응답"""
        event = dispatcher.dispatch(_raw({**sub_ack_frame, "e": "unsubscribed"}))

        assert isinstance(event, SubscriptionAckEvent)
        assert event.subscribed is False

    def test_authenticated(self, dispatcher: MessageDispatcher, auth_ack_frame: dict) -> None:
        """인증 성공 응답"""
        event = dispatcher.dispatch(_raw(auth_ack_frame))

        assert isinstance(event, AuthResultEvent)
        assert event.request_id == "client1"


class TestPublicFeeds:
    """public 피드 디코딩 테스트"""

    def test_book_snapshot(self, dispatcher: MessageDispatcher, book_snapshot_frame: dict) -> None:
        """호가 스냅샷"""
        event = dispatcher.dispatch(_raw(book_snapshot_frame))

        assert isinstance(event, OrderBookSnapshotEvent)
        assert event.market == "btcusdt"
        assert event.asks[0].price == Decimal("23010.5")
        assert event.asks[1].volume == Decimal("1.5")
        assert len(event.bids) == 1

    def test_book_update(self, dispatcher: MessageDispatcher, book_update_frame: dict) -> None:
        """호가 증분은 스냅샷과 다른 이벤트 타입"""
        event = dispatcher.dispatch(_raw(book_update_frame))

        assert isinstance(event, OrderBookDiffEvent)
        assert event.asks[0].volume == Decimal("0")
        assert event.bids == ()

    def test_trade(self, dispatcher: MessageDispatcher, trade_frame: dict) -> None:
        """공개 체결"""
        event = dispatcher.dispatch(_raw(trade_frame))

        assert isinstance(event, TradeEvent)
        assert event.is_snapshot is False
        assert event.trades[0].price == Decimal("23005.1")
        assert event.trades[0].trend == "up"

    def test_ticker(self, dispatcher: MessageDispatcher, ticker_frame: dict) -> None:
        """시세"""
        event = dispatcher.dispatch(_raw(ticker_frame))

        assert isinstance(event, TickerEvent)
        assert event.is_snapshot is True
        assert event.ticker.close == Decimal("23005.1")
        assert event.ticker.volume == Decimal("123.45")

    def test_market_status(self, dispatcher: MessageDispatcher, market_status_frame: dict) -> None:
        """마켓 상태"""
        event = dispatcher.dispatch(_raw(market_status_frame))

        assert isinstance(event, MarketStatusEvent)
        status = event.markets[0]
        assert status.market == "btcusdt"
        assert status.base_unit_precision == 8
        assert status.min_quote_amount == Decimal("8")
        assert status.m_wallet_supported is True

    def test_market_status_without_time(
        self, dispatcher: MessageDispatcher, market_status_frame: dict
    ) -> None:
        """T가 없는 마켓 상태도 디코딩"""
        frame = {k: v for k, v in market_status_frame.items() if k != "T"}

        event = dispatcher.dispatch(_raw(frame))

        assert isinstance(event, MarketStatusEvent)
        assert event.time is None


class TestPrivateFeeds:
    """private 피드 디코딩 테스트"""

    def test_order_update(self, dispatcher: MessageDispatcher, order_update_frame: dict) -> None:
        """내 주문 변경"""
        event = dispatcher.dispatch(_raw(order_update_frame))

        assert isinstance(event, OrderUpdateEvent)
        assert event.is_snapshot is False
        order = event.orders[0]
        assert order.order_id == 87
        assert order.state == "done"
        assert order.stop_price is None
        assert order.executed_volume == Decimal("0.2658")
        assert order.client_oid == "client-oid-1"
        assert order.group_id == 123

    def test_trade_snapshot(self, dispatcher: MessageDispatcher, trade_update_frame: dict) -> None:
        """내 체결 스냅샷"""
        event = dispatcher.dispatch(_raw(trade_update_frame))

        assert isinstance(event, TradeUpdateEvent)
        assert event.is_snapshot is True
        fill = event.trades[0]
        assert fill.fee == Decimal("3.2")
        assert fill.fee_currency == "usdt"
        assert fill.is_maker is True

    def test_account_update(self, dispatcher: MessageDispatcher, account_update_frame: dict) -> None:
        """잔고 변경"""
        event = dispatcher.dispatch(_raw(account_update_frame))

        assert isinstance(event, AccountUpdateEvent)
        assert event.balances[0].currency == "btc"
        assert event.balances[0].available == Decimal("123.4")
        assert event.balances[0].locked == Decimal("0.5")

    def test_bytes_frame(self, dispatcher: MessageDispatcher, account_update_frame: dict) -> None:
        """bytes 프레임도 처리"""
        event = dispatcher.dispatch(_raw(account_update_frame).encode("utf-8"))

        assert isinstance(event, AccountUpdateEvent)


class TestUnknownAndMalformed:
    """알 수 없는 프레임 / 형식 오류 테스트"""

    def test_invalid_json(self, dispatcher: MessageDispatcher) -> None:
        """JSON이 아니면 DecodeErrorEvent"""
        event = dispatcher.dispatch("{not json")

        assert isinstance(event, DecodeErrorEvent)
        assert event.raw == "{not json"

    def test_non_object(self, dispatcher: MessageDispatcher) -> None:
        """객체가 아닌 JSON은 DecodeErrorEvent"""
        assert isinstance(dispatcher.dispatch("[1, 2]"), DecodeErrorEvent)

    def test_invalid_json_logs_frame(
        self, dispatcher: MessageDispatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        """파싱 실패 경고에 프레임 앞부분 기록"""
        with caplog.at_level(logging.WARNING, logger="adapters.max.dispatcher"):
            dispatcher.dispatch("not json")

        assert caplog.records[-1].frame == "not json"

    def test_deeply_nested(self, dispatcher: MessageDispatcher) -> None:
        """중첩이 너무 깊은 프레임도 DecodeErrorEvent"""
        raw = "[" * 200000

        event = dispatcher.dispatch(raw)

        assert isinstance(event, DecodeErrorEvent)
        assert event.raw == raw

    def test_unknown_channel(self, dispatcher: MessageDispatcher) -> None:
        """알 수 없는 채널은 UnknownEvent"""
        event = dispatcher.dispatch(_raw({"c": "kline", "e": "update", "M": "btcusdt"}))

        assert isinstance(event, UnknownEvent)
        assert event.channel == "kline"
        assert event.payload["M"] == "btcusdt"

    def test_unknown_user_event(self, dispatcher: MessageDispatcher) -> None:
        """알 수 없는 private 이벤트는 UnknownEvent"""
        event = dispatcher.dispatch(_raw({"c": "user", "e": "ad_update", "T": 1}))

        assert isinstance(event, UnknownEvent)
        assert event.event == "ad_update"

    def test_no_discriminator(self, dispatcher: MessageDispatcher) -> None:
        """판별자가 없으면 UnknownEvent"""
        event = dispatcher.dispatch(_raw({"hello": "world"}))

        assert isinstance(event, UnknownEvent)
        assert event.event is None
        assert event.channel is None

    def test_missing_field(self, dispatcher: MessageDispatcher, trade_frame: dict) -> None:
        """필수 필드 누락은 DecodeErrorEvent"""
        frame = {k: v for k, v in trade_frame.items() if k != "t"}

        assert isinstance(dispatcher.dispatch(_raw(frame)), DecodeErrorEvent)

    def test_bad_number(self, dispatcher: MessageDispatcher, book_snapshot_frame: dict) -> None:
        """숫자가 아닌 가격은 DecodeErrorEvent"""
        frame = {**book_snapshot_frame, "a": [["abc", "1"]]}

        assert isinstance(dispatcher.dispatch(_raw(frame)), DecodeErrorEvent)

    def test_bad_level_shape(self, dispatcher: MessageDispatcher, book_snapshot_frame: dict) -> None:
        """[price, volume] 형태가 아니면 DecodeErrorEvent"""
        frame = {**book_snapshot_frame, "b": [["1"]]}

        assert isinstance(dispatcher.dispatch(_raw(frame)), DecodeErrorEvent)

    def test_unexpected_feed_type(self, dispatcher: MessageDispatcher, ticker_frame: dict) -> None:
        """snapshot/update가 아닌 e 값은 DecodeErrorEvent"""
        frame = {**ticker_frame, "e": "delta"}

        assert isinstance(dispatcher.dispatch(_raw(frame)), DecodeErrorEvent)

    def test_later_frames_unaffected(
        self, dispatcher: MessageDispatcher, ticker_frame: dict
    ) -> None:
        """형식 오류 이후 프레임은 정상 처리"""
        dispatcher.dispatch("garbage")

        assert isinstance(dispatcher.dispatch(_raw(ticker_frame)), TickerEvent)
