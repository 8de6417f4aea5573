"""
MAX 요청 서명

HMAC-SHA256 서명 생성.
정규 문자열 = nonce + METHOD + path + 쿼리 문자열 (호출자가 지정한 파라미터 순서 유지).

파라미터 순서는 서버가 재구성하는 문자열과 정확히 일치해야 하므로
항상 (key, value) 쌍의 명시적 시퀀스로 다룬다.

주의: X-MAX-PAYLOAD는 정규 문자열의 base64.
MAX v2 공개 API는 base64(JSON {params..., nonce, path})를 payload로 보내고
그 payload에 HMAC을 적용하므로, 이 헤더 구성은 실제 거래소 서버와 호환되지 않음.
"""

import base64
import hashlib
import hmac
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from core.constants import AuthHeaders
from core.types import Credentials


ParamPairs = tuple[tuple[str, Any], ...]
Params = Mapping[str, Any] | Sequence[tuple[str, Any]] | None


def normalize_params(params: Params) -> ParamPairs:
    """파라미터를 순서 있는 (key, value) 튜플로 정규화

    Mapping은 삽입 순서대로 읽음. None 값은 제외.

    Args:
        params: 파라미터 (Mapping 또는 (key, value) 시퀀스)

    Returns:
        정규화된 파라미터 쌍

    Raises:
        ValueError: 중복 키 (호출자 프로그래밍 오류)
    """
    if not params:
        return ()

    items = params.items() if isinstance(params, Mapping) else params

    seen: set[str] = set()
    pairs: list[tuple[str, Any]] = []
    for key, value in items:
        if key in seen:
            raise ValueError(f"Duplicate parameter key: {key}")
        seen.add(key)
        if value is None:
            continue
        pairs.append((key, value))

    return tuple(pairs)


def _scalar(value: Any) -> str:
    """쿼리 문자열용 단일 값 인코딩"""
    # str을 상속한 Enum이 있으므로 Enum 검사가 먼저
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(pairs: ParamPairs) -> str:
    """파라미터 쌍 → URL 쿼리 문자열

    리스트 값은 `key[]=item` 반복으로 인코딩 (예: state[]=wait&state[]=done).
    """
    flat: list[tuple[str, str]] = []
    for key, value in pairs:
        if isinstance(value, (list, tuple)):
            flat.extend((f"{key}[]", _scalar(item)) for item in value)
        else:
            flat.append((key, _scalar(value)))
    return urlencode(flat)


def _json_value(value: Any) -> Any:
    """JSON 본문용 값 변환 (Decimal은 문자열로 유지)"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return value


def encode_body(pairs: ParamPairs) -> str:
    """파라미터 쌍 → JSON 본문 (키 순서 유지)"""
    return json.dumps(
        {key: _json_value(value) for key, value in pairs},
        separators=(",", ":"),
    )


@dataclass(frozen=True)
class Signature:
    """서명 결과

    Attributes:
        access_key: API access key
        nonce: 서명에 사용한 nonce
        payload: 서명한 정규 문자열의 base64 인코딩
        signature: HMAC-SHA256 16진수 다이제스트
    """

    access_key: str
    nonce: int
    payload: str
    signature: str

    def headers(self) -> dict[str, str]:
        """요청에 첨부할 인증 헤더"""
        return {
            AuthHeaders.ACCESS_KEY: self.access_key,
            AuthHeaders.PAYLOAD: self.payload,
            AuthHeaders.SIGNATURE: self.signature,
        }


@dataclass(frozen=True)
class SignedRequest:
    """서명된 요청 (호출마다 생성, 저장하지 않음)

    Attributes:
        method: HTTP 메서드 (대문자)
        path: API 경로 (예: /api/v2/orders)
        params: 전송할 파라미터 (마지막에 nonce 포함)
        signature: 서명 결과
    """

    method: str
    path: str
    params: ParamPairs
    signature: Signature

    @property
    def nonce(self) -> int:
        return self.signature.nonce

    def query_string(self) -> str:
        return encode_query(self.params)

    def json_body(self) -> str:
        return encode_body(self.params)


class RequestSigner:
    """MAX 요청 서명기

    순수 함수에 가까움 - secret 읽기 외 부작용 없음.

    Args:
        credentials: API 인증 정보
    """

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    @property
    def access_key(self) -> str:
        return self._credentials.access_key

    @staticmethod
    def canonical_string(
        method: str,
        path: str,
        params: Params,
        nonce: int,
    ) -> str:
        """서명 대상 정규 문자열 생성

        Args:
            method: HTTP 메서드 (대문자로 변환)
            path: API 경로
            params: 파라미터 (nonce 제외)
            nonce: nonce 값

        Returns:
            nonce + METHOD + path + 쿼리 문자열
        """
        return f"{nonce}{method.upper()}{path}{encode_query(normalize_params(params))}"

    def digest(self, message: str) -> str:
        """HMAC-SHA256 서명 생성

        Args:
            message: 서명할 문자열

        Returns:
            16진수 서명 문자열
        """
        return hmac.new(
            self._credentials.secret_key,
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def sign(
        self,
        method: str,
        path: str,
        params: Params,
        nonce: int,
    ) -> Signature:
        """정규 문자열 서명

        Returns:
            access key, nonce, payload, 서명을 담은 Signature
        """
        canonical = self.canonical_string(method, path, params, nonce)
        return Signature(
            access_key=self._credentials.access_key,
            nonce=nonce,
            payload=base64.b64encode(canonical.encode("utf-8")).decode("ascii"),
            signature=self.digest(canonical),
        )

    def sign_request(
        self,
        method: str,
        path: str,
        params: Params,
        nonce: int,
    ) -> SignedRequest:
        """전송 가능한 서명 요청 생성

        서명은 원본 파라미터로 계산하고, 전송 파라미터에는 nonce 필드를 덧붙임.
        """
        pairs = normalize_params(params)
        if any(key == "nonce" for key, _ in pairs):
            raise ValueError("'nonce' is reserved for signed requests")

        method = method.upper()
        signature = self.sign(method, path, pairs, nonce)
        return SignedRequest(
            method=method,
            path=path,
            params=pairs + (("nonce", nonce),),
            signature=signature,
        )
