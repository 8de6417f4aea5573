"""
MAX 어댑터

MaiCoin MAX API 연동을 담당.
REST 요청 서명과 WebSocket 세션(인증/구독 상태 머신) 지원.
"""

from adapters.max.channels import ChannelRegistry, ChannelSpec
from adapters.max.dispatcher import MessageDispatcher
from adapters.max.errors import (
    ApiError,
    AuthError,
    DecodeError,
    MaxError,
    TransportClosed,
    TransportError,
)
from adapters.max.invoker import RestInvoker
from adapters.max.nonce import NonceSource
from adapters.max.rest_client import MaxRestClient
from adapters.max.signer import RequestSigner, Signature
from adapters.max.ws_session import WsSession
from adapters.max.ws_transport import WebsocketsTransport

__all__ = [
    "ChannelRegistry",
    "ChannelSpec",
    "MessageDispatcher",
    "ApiError",
    "AuthError",
    "DecodeError",
    "MaxError",
    "TransportClosed",
    "TransportError",
    "RestInvoker",
    "NonceSource",
    "MaxRestClient",
    "RequestSigner",
    "Signature",
    "WsSession",
    "WebsocketsTransport",
]
