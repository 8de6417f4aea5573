"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass, field
from enum import Enum


class OrderSide(str, Enum):
    """주문 방향"""

    BUY = "buy"
    SELL = "sell"


class TradeSide(str, Enum):
    """체결 방향 (공개 체결 기록)"""

    ASK = "ask"
    BID = "bid"
    UNKNOWN = "unknown"


class OrderType(str, Enum):
    """주문 유형"""

    LIMIT = "limit"
    MARKET = "market"
    STOP_LIMIT = "stop_limit"
    STOP_MARKET = "stop_market"
    POST_ONLY = "post_only"
    IOC_LIMIT = "ioc_limit"


class OrderState(str, Enum):
    """주문 상태

    - wait: 체결 대기
    - done: 완전 체결
    - cancel: 취소
    - convert: 스탑 주문 트리거됨
    """

    WAIT = "wait"
    DONE = "done"
    CANCEL = "cancel"
    CONVERT = "convert"
    FINALIZING = "finalizing"
    FAILED = "failed"


class OrderBy(str, Enum):
    """목록 정렬 순서 (생성 시간 기준)"""

    ASC = "asc"
    DESC = "desc"


class ChannelScope(str, Enum):
    """WebSocket 채널 범위"""

    PUBLIC = "public"
    PRIVATE = "private"


class Channel(str, Enum):
    """WebSocket 채널 이름 (거래소 규약 값)

    TRADE는 public/private 양쪽에 존재하므로 ChannelScope와 함께 사용.
    """

    # public
    ORDERBOOK = "book"
    TRADE = "trade"
    TICKER = "ticker"
    MARKET_STATUS = "market_status"

    # private
    ORDER = "order"
    ACCOUNT = "account"
    TRADE_UPDATE = "trade_update"


PUBLIC_CHANNELS: frozenset[Channel] = frozenset({
    Channel.ORDERBOOK,
    Channel.TRADE,
    Channel.TICKER,
    Channel.MARKET_STATUS,
})

PRIVATE_CHANNELS: frozenset[Channel] = frozenset({
    Channel.ORDER,
    Channel.TRADE,
    Channel.ACCOUNT,
    Channel.TRADE_UPDATE,
})


@dataclass(frozen=True)
class Credentials:
    """API 인증 정보 (불변)

    클라이언트 수명 동안 변경되지 않음.
    secret_key는 repr/로그에 노출하지 않음.
    """

    access_key: str
    secret_key: bytes = field(repr=False)

    @classmethod
    def create(cls, access_key: str, secret_key: str | bytes) -> "Credentials":
        """Credentials 생성 헬퍼

        secret_key는 문자열 또는 bytes 모두 허용
        """
        if isinstance(secret_key, str):
            secret_key = secret_key.encode("utf-8")
        return cls(access_key=access_key, secret_key=secret_key)
