"""
MAX REST 호출기

NonceSource + RequestSigner + httpx.AsyncClient 조합.
호출 1회 = HTTP 왕복 1회. 재시도 없음 (재시도 정책은 호출자 몫).

실패 분류:
- 연결/타임아웃/TLS 실패 → TransportError
- 2xx 외 응답 → ApiError (본문의 error 객체 파싱)
- 2xx 응답의 error 객체 → ApiError
- 2xx 응답의 JSON 파싱/디코더 실패 → DecodeError
"""

import logging
from typing import Any, Callable, TypeVar

import httpx

from adapters.max.errors import ApiError, DecodeError, TransportError
from adapters.max.nonce import NonceSource
from adapters.max.signer import (
    Params,
    RequestSigner,
    encode_body,
    encode_query,
    normalize_params,
)
from core.constants import Defaults, MaxEndpoints

logger = logging.getLogger(__name__)


T = TypeVar("T")
Decoder = Callable[[Any], T]

# 쿼리 문자열로 파라미터를 전송하는 메서드 (나머지는 JSON 본문)
QUERY_METHODS = frozenset({"GET", "DELETE"})

# 디코더가 잘못된 응답 형태에서 발생시키는 예외
DECODE_EXCEPTIONS = (KeyError, TypeError, ValueError, ArithmeticError, IndexError, OSError)


class RestInvoker:
    """MAX REST 호출기

    HTTP 클라이언트를 주입하지 않으면 첫 호출 시 생성하고 close()에서 종료.

    Args:
        base_url: REST API 베이스 URL
        signer: 요청 서명기 (None이면 인증 요청 불가)
        nonce_source: nonce 생성기 (None이면 새로 생성)
        http_client: 주입할 httpx.AsyncClient (소유권은 호출자)
        timeout: 요청 타임아웃 (초, 내부 생성 클라이언트에만 적용)
    """

    def __init__(
        self,
        base_url: str = MaxEndpoints.REST_URL,
        signer: RequestSigner | None = None,
        nonce_source: NonceSource | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = Defaults.HTTP_TIMEOUT_SEC,
    ):
        self.base_url = base_url.rstrip("/")
        self.signer = signer
        self.nonce_source = nonce_source or NonceSource()
        self.timeout = timeout

        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """내부 생성한 HTTP 클라이언트 종료"""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        if self._owns_client:
            self._client = None

    async def __aenter__(self) -> "RestInvoker":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # 요청 구성
    # -------------------------------------------------------------------------

    def _prepare(
        self,
        method: str,
        path: str,
        params: Params,
        requires_auth: bool,
    ) -> tuple[str, dict[str, str], str | None]:
        """URL, 헤더, 본문 구성

        Returns:
            (url, headers, content)
        """
        method = method.upper()
        headers = {"Accept": "application/json"}

        if requires_auth:
            if self.signer is None:
                raise ValueError(f"Signed request to {path} requires credentials")
            signed = self.signer.sign_request(
                method, path, params, self.nonce_source.next()
            )
            pairs = signed.params
            headers.update(signed.signature.headers())
        else:
            pairs = normalize_params(params)

        url = f"{self.base_url}{path}"
        content: str | None = None

        if method in QUERY_METHODS:
            query = encode_query(pairs)
            if query:
                url = f"{url}?{query}"
        elif pairs:
            content = encode_body(pairs)
            headers["Content-Type"] = "application/json"

        return url, headers, content

    # -------------------------------------------------------------------------
    # 호출
    # -------------------------------------------------------------------------

    async def call(
        self,
        method: str,
        path: str,
        params: Params = (),
        requires_auth: bool = False,
        decoder: Decoder[T] | None = None,
    ) -> Any:
        """API 요청 1회 실행

        Args:
            method: HTTP 메서드 (GET, POST, PUT, DELETE)
            path: API 경로 (예: /api/v2/orders)
            params: 순서 있는 파라미터
            requires_auth: 서명 필요 여부
            decoder: 응답 JSON → 결과 변환 함수 (None이면 JSON 그대로)

        Returns:
            디코딩된 응답

        Raises:
            TransportError: 네트워크/IO 실패
            ApiError: 서버가 요청을 거부
            DecodeError: 응답 본문이 기대한 형태가 아님
            ValueError: 잘못된 파라미터 (중복 키 등)
        """
        url, headers, content = self._prepare(method, path, params, requires_auth)
        client = await self._get_client()

        try:
            response = await client.request(
                method.upper(),
                url,
                headers=headers,
                content=content,
            )
        except httpx.RequestError as e:
            logger.error(
                "Request error",
                extra={"path": path, "error": str(e)},
            )
            raise TransportError(f"{method.upper()} {path} failed: {e}") from e

        return self._classify(path, response, decoder)

    def _classify(
        self,
        path: str,
        response: httpx.Response,
        decoder: Decoder[T] | None,
    ) -> Any:
        """응답 분류 및 디코딩"""
        if not response.is_success:
            code, message = _parse_error(response)
            logger.warning(
                "MAX API error",
                extra={"path": path, "status": response.status_code, "code": code},
            )
            raise ApiError(code=code, message=message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(
                f"Invalid JSON from {path}: {e}", body=response.text[:200]
            ) from e

        # 200 응답에 error 객체가 담긴 경우
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error = data["error"]
            raise ApiError(
                code=_to_int(error.get("code"), response.status_code),
                message=str(error.get("message", "")),
                status_code=response.status_code,
            )

        if decoder is None:
            return data

        try:
            return decoder(data)
        except DECODE_EXCEPTIONS as e:
            raise DecodeError(
                f"Unexpected response shape from {path}: {e!r}",
                body=response.text[:200],
            ) from e


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_error(response: httpx.Response) -> tuple[int, str]:
    """에러 응답 본문에서 (code, message) 추출

    {"error": {"code": 2006, "message": "..."}} 형태가 아니면
    (HTTP 상태 코드, 본문) 반환.
    """
    try:
        data = response.json()
    except ValueError:
        return response.status_code, response.text

    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return response.status_code, response.text

    return (
        _to_int(error.get("code"), response.status_code),
        str(error.get("message", response.text)),
    )
