"""
설정 로더

secrets.yaml 또는 환경 변수에서 인증 정보 로드 및 클라이언트 설정 생성
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import Defaults, MaxEndpoints, Paths
from core.types import Credentials


@dataclass(frozen=True)
class ClientConfig:
    """거래소 연결 설정

    엔드포인트와 HTTP 타임아웃 정보를 포함
    """

    rest_url: str = MaxEndpoints.REST_URL
    ws_url: str = MaxEndpoints.WS_URL
    timeout: float = Defaults.HTTP_TIMEOUT_SEC


class SecretsLoadError(Exception):
    """Secrets 로드 실패 예외"""

    pass


def load_credentials(path: Path | None = None) -> Credentials:
    """secrets.yaml 파일에서 인증 정보 로드

    형식:
        max:
          access_key: "..."
          secret_key: "..."

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Credentials 인스턴스

    Raises:
        SecretsLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE

    if not path.exists():
        raise SecretsLoadError(f"secrets.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SecretsLoadError("secrets.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise SecretsLoadError("secrets.yaml 최상위는 매핑이어야 합니다")

    section = data.get("max")
    if not isinstance(section, dict):
        raise SecretsLoadError("secrets.yaml에 'max' 설정이 없습니다")

    access_key = section.get("access_key")
    secret_key = section.get("secret_key")

    if not access_key:
        raise SecretsLoadError("secrets.yaml의 max 섹션에 'access_key'가 없습니다")
    if not secret_key:
        raise SecretsLoadError("secrets.yaml의 max 섹션에 'secret_key'가 없습니다")

    return Credentials.create(str(access_key), str(secret_key))


def load_credentials_from_env(
    access_var: str = Defaults.ACCESS_KEY_ENV,
    secret_var: str = Defaults.SECRET_KEY_ENV,
) -> Credentials:
    """환경 변수에서 인증 정보 로드

    Args:
        access_var: access key 환경 변수 이름
        secret_var: secret key 환경 변수 이름

    Returns:
        Credentials 인스턴스

    Raises:
        SecretsLoadError: 환경 변수가 비어 있는 경우
    """
    access_key = os.environ.get(access_var, "")
    secret_key = os.environ.get(secret_var, "")

    if not access_key:
        raise SecretsLoadError(f"환경 변수 {access_var}가 설정되지 않았습니다")
    if not secret_key:
        raise SecretsLoadError(f"환경 변수 {secret_var}가 설정되지 않았습니다")

    return Credentials.create(access_key, secret_key)


def load_client_config(path: Path | None = None) -> ClientConfig:
    """클라이언트 설정 로드

    secrets.yaml의 선택적 'client' 섹션으로 엔드포인트/타임아웃 재정의 가능.
    파일이나 섹션이 없으면 기본값 사용.

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        ClientConfig 인스턴스
    """
    if path is None:
        path = Paths.SECRETS_FILE

    if not path.exists():
        return ClientConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if not isinstance(data, dict):
        raise SecretsLoadError("secrets.yaml 최상위는 매핑이어야 합니다")

    section = data.get("client") or {}
    if not isinstance(section, dict):
        raise SecretsLoadError("secrets.yaml의 client 섹션은 매핑이어야 합니다")

    return ClientConfig(
        rest_url=str(section.get("rest_url", MaxEndpoints.REST_URL)).rstrip("/"),
        ws_url=str(section.get("ws_url", MaxEndpoints.WS_URL)),
        timeout=float(section.get("timeout", Defaults.HTTP_TIMEOUT_SEC)),
    )
