"""
WebSocket 송신 프레임

인증/구독/구독 해제 요청 JSON 생성.
"""

import json
from typing import Any

from adapters.max.channels import ChannelSpec
from adapters.max.signer import RequestSigner
from core.constants import WsAuth


def _dumps(frame: dict[str, Any]) -> str:
    return json.dumps(frame, separators=(",", ":"))


def auth_frame(
    signer: RequestSigner,
    nonce: int,
    request_id: str = "",
    filters: list[str] | tuple[str, ...] | None = None,
) -> str:
    """인증 요청 프레임

    서명 대상은 거래소가 정한 고정 method/path(빈 문자열)이므로
    결과적으로 nonce 문자열 자체에 대한 HMAC.

    Args:
        signer: 요청 서명기
        nonce: 세션 인증용 nonce
        request_id: 클라이언트 요청 ID
        filters: 수신할 private 채널 이름 목록 (None이면 전체)
    """
    signature = signer.sign(WsAuth.METHOD, WsAuth.PATH, (), nonce)
    frame: dict[str, Any] = {
        "action": WsAuth.ACTION,
        "apiKey": signature.access_key,
        "nonce": nonce,
        "signature": signature.signature,
        "id": request_id,
    }
    if filters is not None:
        frame["filters"] = list(filters)
    return _dumps(frame)


def subscribe_frame(specs: list[ChannelSpec] | tuple[ChannelSpec, ...], request_id: str = "") -> str:
    """구독 요청 프레임"""
    return _dumps({
        "action": "sub",
        "subscriptions": [spec.to_wire() for spec in specs],
        "id": request_id,
    })


def unsubscribe_frame(specs: list[ChannelSpec] | tuple[ChannelSpec, ...], request_id: str = "") -> str:
    """구독 해제 요청 프레임"""
    return _dumps({
        "action": "unsub",
        "subscriptions": [spec.to_wire() for spec in specs],
        "id": request_id,
    })
