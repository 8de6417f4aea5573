"""
로깅 설정

MAX 클라이언트를 사용하는 프로세스의 로거 구성.
- 콘솔 핸들러 + 일별 롤링 파일 핸들러
- 인증 관련 필드(서명, access key, payload) 마스킹
- httpx/websockets 등 외부 라이브러리 로그 레벨 조정

사용법:
    from core.logging import setup_logging
    setup_logging("max-client", console_level="DEBUG")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Defaults, Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 외부 라이브러리 로거 (WARNING으로 조정)
NOISY_LOGGERS = [
    "httpcore",
    "httpx",          # 요청 URL에 nonce 포함
    "websockets",     # 프레임 단위 로그
    "asyncio",
]

# extra로 전달되더라도 기록하지 않는 필드
SENSITIVE_FIELDS = frozenset({
    "signature",
    "apiKey",
    "access_key",
    "secret_key",
    "payload",
    "headers",
})

MASK = "***"


class RedactFilter(logging.Filter):
    """민감 필드 마스킹 필터

    LogRecord에 SENSITIVE_FIELDS 속성이 있으면 값을 MASK로 치환.
    레코드는 항상 통과시킴.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name in SENSITIVE_FIELDS:
            if name in record.__dict__:
                setattr(record, name, MASK)
        return True


def _resolve_level(level: int | str) -> int:
    """로그 레벨 이름/숫자 → 숫자"""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    process_name: str,
    console_level: int | str = Defaults.LOG_LEVEL,
    file_level: int | str = Defaults.LOG_LEVEL,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    기존 핸들러는 제거 후 다시 구성하므로 여러 번 호출해도 중복되지 않음.

    Args:
        process_name: 프로세스 이름 (로그 파일 이름)
        console_level: 콘솔 로그 레벨 (예: "INFO", logging.DEBUG)
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger

    Raises:
        ValueError: 알 수 없는 로그 레벨 이름
    """
    console_level = _resolve_level(console_level)
    file_level = _resolve_level(file_level)

    log_file = get_log_file_path(process_name, log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    # 레벨 필터링은 핸들러에서
    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    redact = RedactFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redact)
    root_logger.addHandler(console_handler)

    # 자정마다 새 파일 (백업 파일: max-client.log.2026-01-31)
    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(redact)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        "로깅 초기화 완료",
        extra={
            "process_name": process_name,
            "log_file": str(log_file),
            "console_level": logging.getLevelName(console_level),
            "file_level": logging.getLevelName(file_level),
        },
    )

    return root_logger


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로 ({log_dir}/{process_name}.log)"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"
