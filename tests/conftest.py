"""
pytest 공통 fixture 정의

인증 정보, secrets.yaml 임시 파일 등 공통 fixture
"""

import tempfile
from pathlib import Path

import pytest

from core.types import Credentials


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_secrets_file(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성"""
    secrets_content = """# 테스트용 secrets.yaml
max:
  access_key: "test_access_key_abcde"
  secret_key: "test_secret_key_fghij"
"""
    secrets_path = temp_dir / "secrets.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_with_client(temp_dir: Path) -> Path:
    """client 섹션이 포함된 secrets.yaml 파일 생성"""
    secrets_content = """max:
  access_key: "test_access_key_abcde"
  secret_key: "test_secret_key_fghij"

client:
  rest_url: "https://max-api.example.com/"
  ws_url: "wss://max-stream.example.com/ws"
  timeout: 5
"""
    secrets_path = temp_dir / "secrets_client.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_missing_key(temp_dir: Path) -> Path:
    """secret_key가 누락된 secrets.yaml 파일 생성"""
    secrets_content = """max:
  access_key: "test_access_key_abcde"
"""
    secrets_path = temp_dir / "secrets_missing.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def credentials() -> Credentials:
    """테스트용 인증 정보"""
    return Credentials.create("test_access_key", "test_secret_key")
