"""
Nonce 생성기

서명 요청마다 한 번만 사용하는 단조 증가 정수 (밀리초 타임스탬프 기반).
거래소는 증가하지 않는 nonce를 거부하므로 재전송(replay) 방지에 사용.
"""

import threading
import time
from typing import Callable


def _clock_ms() -> int:
    """현재 시각 (Unix epoch 밀리초)"""
    return time.time_ns() // 1_000_000


class NonceSource:
    """단조 증가 nonce 생성기

    벽시계 시간을 사용하되, 시계가 진행하지 않았거나 역행한 경우
    이전 값 + 1을 반환하여 항상 엄격히 증가.

    락 안에서 await 없이 계산하므로 스레드와 asyncio 태스크 모두에서 안전.

    Args:
        clock: 밀리초 시계 (테스트용 주입)
    """

    def __init__(self, clock: Callable[[], int] = _clock_ms):
        self._clock = clock
        self._lock = threading.Lock()
        self._last = clock() - 1

    def next(self) -> int:
        """다음 nonce 반환

        Returns:
            이전에 반환한 모든 값보다 큰 정수
        """
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
            return value

    @property
    def last(self) -> int:
        """마지막으로 반환한 값 (아직 호출 전이면 초기값)"""
        with self._lock:
            return self._last
