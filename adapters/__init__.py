"""
어댑터 레이어

외부 서비스(MAX REST/WebSocket)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IExchangeRestClient,
    IWsTransport,
)
from adapters.models import (
    Account,
    Currency,
    DepthLevel,
    Market,
    Order,
    OrderBook,
    OrderRequest,
    PublicTrade,
    Ticker,
    Trade,
)

__all__ = [
    # Interfaces
    "IExchangeRestClient",
    "IWsTransport",
    # Models
    "Account",
    "Currency",
    "DepthLevel",
    "Market",
    "Order",
    "OrderBook",
    "OrderRequest",
    "PublicTrade",
    "Ticker",
    "Trade",
]
