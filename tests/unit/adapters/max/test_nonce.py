"""
NonceSource 테스트

단조 증가, 시계 역행, 동시 호출 검증.
"""

import asyncio
import threading

import pytest

from adapters.max.nonce import NonceSource


class FakeClock:
    """수동 조작 밀리초 시계"""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


class TestNonceSourceMonotonic:
    """단조 증가 테스트"""

    def test_first_value_follows_clock(self) -> None:
        """첫 값은 현재 시계 값"""
        clock = FakeClock(1_700_000_000_000)
        source = NonceSource(clock=clock)

        assert source.next() == 1_700_000_000_000

    def test_same_millisecond_increments(self) -> None:
        """같은 밀리초 내 연속 호출은 1씩 증가"""
        source = NonceSource(clock=FakeClock(1000))

        values = [source.next() for _ in range(5)]

        assert values == [1000, 1001, 1002, 1003, 1004]

    def test_clock_advance_jumps_forward(self) -> None:
        """시계가 앞서면 시계 값을 사용"""
        clock = FakeClock(1000)
        source = NonceSource(clock=clock)
        source.next()

        clock.now = 5000

        assert source.next() == 5000

    def test_clock_rollback_stays_increasing(self) -> None:
        """시계가 역행해도 이전 값보다 큼"""
        clock = FakeClock(5000)
        source = NonceSource(clock=clock)
        first = source.next()

        clock.now = 1000
        second = source.next()
        third = source.next()

        assert first < second < third
        assert second == 5001

    def test_last_property(self) -> None:
        """last는 마지막 반환 값"""
        source = NonceSource(clock=FakeClock(42))
        source.next()
        source.next()

        assert source.last == 43

    def test_real_clock_is_increasing(self) -> None:
        """기본 시계도 엄격히 증가"""
        source = NonceSource()
        values = [source.next() for _ in range(1000)]

        assert all(a < b for a, b in zip(values, values[1:]))


class TestNonceSourceConcurrency:
    """동시 호출 테스트"""

    def test_threads_get_unique_values(self) -> None:
        """여러 스레드에서 호출해도 값이 중복되지 않음"""
        source = NonceSource(clock=FakeClock(1000))
        results: list[int] = []
        results_lock = threading.Lock()

        def worker() -> None:
            local = [source.next() for _ in range(200)]
            with results_lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 1600
        assert len(set(results)) == 1600
        assert max(results) == 1000 + 1600 - 1

    @pytest.mark.asyncio
    async def test_tasks_get_unique_values(self) -> None:
        """asyncio 태스크에서 동시 호출해도 값이 중복되지 않음"""
        source = NonceSource(clock=FakeClock(1000))

        async def take() -> int:
            await asyncio.sleep(0)
            return source.next()

        values = await asyncio.gather(*(take() for _ in range(100)))

        assert sorted(values) == list(range(1000, 1100))
