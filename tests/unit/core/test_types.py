"""
core/types.py 테스트
"""

import pytest

from core.types import (
    PRIVATE_CHANNELS,
    PUBLIC_CHANNELS,
    Channel,
    Credentials,
    OrderSide,
    OrderState,
)


class TestEnums:
    """Enum 직렬화 테스트"""

    def test_str_enum(self) -> None:
        """str 상속 Enum은 문자열과 비교 가능"""
        assert OrderSide.BUY == "buy"
        assert OrderState("wait") == OrderState.WAIT

    def test_channel_values(self) -> None:
        """채널 값은 거래소 규약"""
        assert Channel.ORDERBOOK.value == "book"
        assert Channel.TRADE_UPDATE.value == "trade_update"

    def test_trade_in_both_scopes(self) -> None:
        """trade는 public/private 양쪽"""
        assert Channel.TRADE in PUBLIC_CHANNELS
        assert Channel.TRADE in PRIVATE_CHANNELS
        assert PUBLIC_CHANNELS & PRIVATE_CHANNELS == {Channel.TRADE}


class TestCredentials:
    """인증 정보 테스트"""

    def test_create_from_str(self) -> None:
        """문자열 secret은 bytes로 변환"""
        credentials = Credentials.create("key", "secret")

        assert credentials.secret_key == b"secret"

    def test_create_from_bytes(self) -> None:
        """bytes secret은 그대로"""
        assert Credentials.create("key", b"raw").secret_key == b"raw"

    def test_frozen(self) -> None:
        """불변성 확인"""
        credentials = Credentials.create("key", "secret")

        with pytest.raises(AttributeError):
            credentials.access_key = "other"  # type: ignore

    def test_repr_hides_secret(self) -> None:
        """repr에 secret 미노출"""
        assert "secret" not in repr(Credentials.create("key", "secret"))
