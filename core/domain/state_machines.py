"""
State Machines

WebSocket 세션의 상태 전이 관리.
허용된 전이만 수행하고 전이 이력을 보관.
"""

import logging
from enum import Enum
from typing import NamedTuple

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """허용되지 않은 상태 전이"""


class Transition(NamedTuple):
    """전이 이력 항목 (from_state, to_state)"""

    from_state: str
    to_state: str


def _state_key(state: str | Enum) -> str:
    return state.value if isinstance(state, Enum) else state


class SessionState(str, Enum):
    """WebSocket 세션 상태

    전이 규칙:
    - DISCONNECTED → CONNECTED: 전송 계층 연결 성공
    - CONNECTED → AUTHENTICATING: private 채널 존재, 인증 프레임 전송
    - CONNECTED → READY: public 채널만 존재, 구독 전송
    - CONNECTED → DISCONNECTED: 연결 직후 끊김
    - AUTHENTICATING → READY: 인증 성공
    - AUTHENTICATING → DISCONNECTED: 인증 실패 또는 연결 끊김
    - READY → AUTHENTICATING: 미인증 세션에 private 채널 추가
    - READY → DISCONNECTED: 연결 끊김
    """
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    AUTHENTICATING = "AUTHENTICATING"
    READY = "READY"


class StateMachine:
    """전이 표 기반 상태 머신

    상태는 문자열로 보관 (Enum은 value로 변환).

    Args:
        initial_state: 초기 상태
        transitions: {from_state: [to_states]}
        name: 로그/오류 메시지에 쓰는 이름
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self.name = name
        self._state = _state_key(initial_state)
        self._table = {
            source: tuple(_state_key(target) for target in targets)
            for source, targets in transitions.items()
        }
        self._history: list[Transition] = []

    @property
    def state(self) -> str:
        return self._state

    @property
    def history(self) -> list[Transition]:
        """전이 이력 (복사본)"""
        return list(self._history)

    def allowed_targets(self) -> tuple[str, ...]:
        """현재 상태에서 갈 수 있는 상태들"""
        return self._table.get(self._state, ())

    def can_transition(self, to_state: str | Enum) -> bool:
        return _state_key(to_state) in self.allowed_targets()

    def transition(self, to_state: str | Enum) -> str:
        """to_state로 전이

        Raises:
            StateMachineError: 전이 표에 없는 전이
        """
        target = _state_key(to_state)
        if not self.can_transition(target):
            raise StateMachineError(
                f"{self.name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {list(self.allowed_targets())}"
            )

        step = Transition(self._state, target)
        self._state = target
        self._history.append(step)

        logger.debug(
            "상태 전이",
            extra={"machine": self.name, "from_state": step.from_state, "to_state": target},
        )
        return target


class SessionStateMachine(StateMachine):
    """WebSocket 세션 상태 머신

    종료 상태 없음. DISCONNECTED는 무한히 재진입 가능.
    """

    TRANSITIONS: dict[str, list[str]] = {
        "DISCONNECTED": ["CONNECTED"],
        "CONNECTED": ["AUTHENTICATING", "READY", "DISCONNECTED"],
        "AUTHENTICATING": ["READY", "DISCONNECTED"],
        "READY": ["AUTHENTICATING", "DISCONNECTED"],
    }

    def __init__(self, initial_state: str | SessionState = SessionState.DISCONNECTED):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="SessionStateMachine",
        )

    @property
    def current(self) -> SessionState:
        """현재 상태 (Enum)"""
        return SessionState(self._state)

    @property
    def is_connected(self) -> bool:
        """전송 계층 연결 여부"""
        return self._state != "DISCONNECTED"

    @property
    def is_ready(self) -> bool:
        """구독 완료 (정상 수신) 상태 여부"""
        return self._state == "READY"
