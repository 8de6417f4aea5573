"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class MaxEndpoints:
    """MaiCoin MAX API 엔드포인트 (고정값)

    공식 문서:
    - REST: https://max.maicoin.com/documents/api_list/v2
    - WebSocket: https://maicoin.github.io/max-websocket-docs/
    """

    REST_URL: str = "https://max-api.maicoin.com"
    WS_URL: str = "wss://max-stream.maicoin.com/ws"


class AuthHeaders:
    """REST 인증 헤더 이름 (거래소 규약, 변경 불가)"""

    ACCESS_KEY: str = "X-MAX-ACCESSKEY"
    PAYLOAD: str = "X-MAX-PAYLOAD"
    SIGNATURE: str = "X-MAX-SIGNATURE"


class WsAuth:
    """WebSocket 인증 규약

    MAX는 WebSocket 인증 시 nonce 문자열만 서명한다.
    RequestSigner의 정규 문자열에서 method/path를 비우면 동일한 결과.
    """

    ACTION: str = "auth"
    METHOD: str = ""
    PATH: str = ""


class Defaults:
    """기본값 상수"""

    HTTP_TIMEOUT_SEC: float = 30.0

    WS_PING_INTERVAL_SEC: float = 30.0
    WS_PING_TIMEOUT_SEC: float = 10.0

    ACCESS_KEY_ENV: str = "MAX_ACCESS_KEY"
    SECRET_KEY_ENV: str = "MAX_SECRET_KEY"

    WS_EVENT_QUEUE_SIZE: int = 10_000

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"
