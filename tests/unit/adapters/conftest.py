"""
어댑터 테스트 픽스처

MAX WebSocket 서버 프레임 샘플 및 공통 객체 제공.
"""

from typing import Any

import pytest

from adapters.max.channels import ChannelRegistry, ChannelSpec
from adapters.max.signer import RequestSigner
from adapters.mock.ws_transport import MockWsTransport
from core.types import Channel, Credentials


# -------------------------------------------------------------------------
# 공통 객체 픽스처
# -------------------------------------------------------------------------

@pytest.fixture
def signer(credentials: Credentials) -> RequestSigner:
    """테스트용 서명기"""
    return RequestSigner(credentials)


@pytest.fixture
def mock_transport() -> MockWsTransport:
    """Mock WebSocket 전송 계층"""
    return MockWsTransport()


@pytest.fixture
def registry() -> ChannelRegistry:
    """빈 채널 레지스트리"""
    return ChannelRegistry()


@pytest.fixture
def order_channel() -> ChannelSpec:
    """private order 채널"""
    return ChannelSpec.private(Channel.ORDER)


@pytest.fixture
def trade_channel() -> ChannelSpec:
    """public trade:btcusdt 채널"""
    return ChannelSpec.trade("btcusdt")


# -------------------------------------------------------------------------
# 서버 프레임 픽스처
# -------------------------------------------------------------------------

@pytest.fixture
def auth_ack_frame() -> dict[str, Any]:
    """인증 성공 응답"""
    return {"e": "authenticated", "i": "client1", "T": 1678092207000}


@pytest.fixture
def error_frame() -> dict[str, Any]:
    """서버 에러 프레임"""
    return {
        "e": "error",
        "E": ["invalid signature"],
        "i": "client1",
        "T": 1678092207000,
    }


@pytest.fixture
def sub_ack_frame() -> dict[str, Any]:
    """구독 응답"""
    return {
        "e": "subscribed",
        "s": [{"channel": "trade", "market": "btcusdt"}],
        "i": "client1",
        "T": 1678092207000,
    }


@pytest.fixture
def book_snapshot_frame() -> dict[str, Any]:
    """호가 스냅샷"""
    return {
        "c": "book",
        "e": "snapshot",
        "M": "btcusdt",
        "a": [["23010.5", "0.25"], ["23011.0", "1.5"]],
        "b": [["23000.0", "0.3"]],
        "T": 1678092207000,
    }


@pytest.fixture
def book_update_frame() -> dict[str, Any]:
    """호가 증분 변경"""
    return {
        "c": "book",
        "e": "update",
        "M": "btcusdt",
        "a": [["23010.5", "0"]],
        "b": [],
        "T": 1678092208000,
    }


@pytest.fixture
def trade_frame() -> dict[str, Any]:
    """공개 체결"""
    return {
        "c": "trade",
        "e": "update",
        "M": "btcusdt",
        "t": [{"p": "23005.1", "v": "0.01", "T": 1678092207500, "tr": "up"}],
        "T": 1678092207600,
    }


@pytest.fixture
def ticker_frame() -> dict[str, Any]:
    """시세"""
    return {
        "c": "ticker",
        "e": "snapshot",
        "M": "btcusdt",
        "tk": {"O": "22000", "H": "23500", "L": "21800", "C": "23005.1", "v": "123.45"},
        "T": 1678092207000,
    }


@pytest.fixture
def market_status_frame() -> dict[str, Any]:
    """마켓 상태"""
    return {
        "c": "market_status",
        "e": "snapshot",
        "ms": [
            {
                "M": "btcusdt",
                "st": "active",
                "bu": "btc",
                "bup": 8,
                "mba": "0.0001",
                "qu": "usdt",
                "qup": 2,
                "mqa": "8",
                "mws": True,
            }
        ],
        "T": 1678092207000,
    }


@pytest.fixture
def order_update_frame() -> dict[str, Any]:
    """내 주문 변경"""
    return {
        "c": "user",
        "e": "order_update",
        "o": [
            {
                "i": 87,
                "sd": "bid",
                "ot": "limit",
                "p": "21499.0",
                "sp": None,
                "ap": "21499.0",
                "S": "done",
                "M": "btcusdt",
                "T": 1521726960123,
                "v": "0.2658",
                "rv": "0.0",
                "ev": "0.2658",
                "tc": 1,
                "ci": "client-oid-1",
                "gi": 123,
            }
        ],
        "T": 1521726960357,
    }


@pytest.fixture
def trade_update_frame() -> dict[str, Any]:
    """내 체결"""
    return {
        "c": "user",
        "e": "trade_snapshot",
        "t": [
            {
                "i": 68444,
                "p": "21499.0",
                "v": "0.2658",
                "M": "btcusdt",
                "T": 1521726960357,
                "sd": "bid",
                "f": "3.2",
                "fc": "usdt",
                "m": True,
            }
        ],
        "T": 1521726960357,
    }


@pytest.fixture
def account_update_frame() -> dict[str, Any]:
    """잔고 변경"""
    return {
        "c": "user",
        "e": "account_update",
        "B": [{"cu": "btc", "av": "123.4", "l": "0.5"}],
        "T": 1521726960357,
    }
