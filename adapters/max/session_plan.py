"""
WebSocket 세션 전이 계획

(현재 상태, 트리거, 레지스트리 스냅샷, 컨텍스트) → (다음 상태, 송신 명령, 이벤트, 컨텍스트).
순수 함수이므로 IO 없이 모든 전이 규칙을 테스트할 수 있음.
실제 송신과 상태 반영은 WsSession이 락 안에서 수행.
"""

from dataclasses import dataclass

from adapters.max.channels import ChannelSpec
from adapters.max.events import AuthErrorEvent, InboundEvent
from core.domain.state_machines import SessionState


# -----------------------------------------------------------------------------
# 트리거
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Opened:
    """전송 계층 연결 완료"""


@dataclass(frozen=True)
class AuthAccepted:
    """인증 성공 응답 수신"""


@dataclass(frozen=True)
class AuthRejected:
    """AUTHENTICATING 중 에러 프레임 수신"""

    event: AuthErrorEvent


@dataclass(frozen=True)
class Closed:
    """전송 계층 종료 감지 또는 disconnect() 호출"""

    reason: str = ""


@dataclass(frozen=True)
class ChannelAdded:
    spec: ChannelSpec


@dataclass(frozen=True)
class ChannelRemoved:
    spec: ChannelSpec


Trigger = Opened | AuthAccepted | AuthRejected | Closed | ChannelAdded | ChannelRemoved


# -----------------------------------------------------------------------------
# 명령
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SendAuth:
    """인증 프레임 송신 (filters: 수신할 private 채널 이름)"""

    filters: tuple[str, ...]


@dataclass(frozen=True)
class SendSubscribe:
    spec: ChannelSpec


@dataclass(frozen=True)
class SendUnsubscribe:
    spec: ChannelSpec


@dataclass(frozen=True)
class CloseTransport:
    """전송 계층 종료"""


Command = SendAuth | SendSubscribe | SendUnsubscribe | CloseTransport


# -----------------------------------------------------------------------------
# 컨텍스트 / 결과
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionContext:
    """연결 단위 세션 컨텍스트

    Attributes:
        authenticated: 현재 연결에서 인증 완료 여부
        active: 현재 연결에서 구독 명령을 보낸 채널 (송신 순서)
    """

    authenticated: bool = False
    active: tuple[ChannelSpec, ...] = ()

    def with_active(self, specs: tuple[ChannelSpec, ...]) -> "SessionContext":
        return SessionContext(authenticated=self.authenticated, active=specs)


@dataclass(frozen=True)
class Transition:
    """전이 결과

    commands는 나열된 순서대로 송신해야 함.
    """

    state: SessionState
    context: SessionContext
    commands: tuple[Command, ...] = ()
    events: tuple[InboundEvent, ...] = ()

    @property
    def subscribes(self) -> tuple[ChannelSpec, ...]:
        return tuple(c.spec for c in self.commands if isinstance(c, SendSubscribe))


def private_filters(snapshot: tuple[ChannelSpec, ...]) -> tuple[str, ...]:
    """스냅샷의 private 채널 이름 (중복 제거, 순서 유지)"""
    names = [spec.channel.value for spec in snapshot if spec.is_private]
    return tuple(dict.fromkeys(names))


def _subscribe_missing(
    snapshot: tuple[ChannelSpec, ...],
    context: SessionContext,
) -> tuple[tuple[Command, ...], SessionContext]:
    """스냅샷 중 아직 구독하지 않은 채널을 스냅샷 순서대로 구독"""
    missing = tuple(spec for spec in snapshot if spec not in context.active)
    commands = tuple(SendSubscribe(spec) for spec in missing)
    return commands, context.with_active(context.active + missing)


def _open(
    snapshot: tuple[ChannelSpec, ...],
    context: SessionContext,
) -> Transition:
    """CONNECTED → AUTHENTICATING 또는 READY"""
    if any(spec.is_private for spec in snapshot) and not context.authenticated:
        return Transition(
            state=SessionState.AUTHENTICATING,
            context=context,
            commands=(SendAuth(private_filters(snapshot)),),
        )

    commands, context = _subscribe_missing(snapshot, context)
    return Transition(state=SessionState.READY, context=context, commands=commands)


# -----------------------------------------------------------------------------
# 전이 함수
# -----------------------------------------------------------------------------


def plan(
    state: SessionState,
    trigger: Trigger,
    snapshot: tuple[ChannelSpec, ...],
    context: SessionContext,
) -> Transition:
    """세션 전이 계획

    규칙에 없는 (상태, 트리거) 조합은 상태 변화 없는 빈 전이를 반환.

    Args:
        state: 현재 세션 상태
        trigger: 발생한 트리거
        snapshot: 현재 레지스트리 스냅샷 (삽입 순서)
        context: 현재 연결 컨텍스트

    Returns:
        다음 상태, 송신 명령, 발행 이벤트, 갱신된 컨텍스트
    """
    unchanged = Transition(state=state, context=context)

    # 전송 종료는 모든 상태에서 DISCONNECTED (연결 단위 컨텍스트 초기화)
    if isinstance(trigger, Closed):
        return Transition(state=SessionState.DISCONNECTED, context=SessionContext())

    if isinstance(trigger, Opened):
        if state != SessionState.CONNECTED:
            return unchanged
        return _open(snapshot, SessionContext())

    if isinstance(trigger, AuthAccepted):
        if state != SessionState.AUTHENTICATING:
            return unchanged
        authed = SessionContext(authenticated=True, active=context.active)
        commands, authed = _subscribe_missing(snapshot, authed)
        return Transition(state=SessionState.READY, context=authed, commands=commands)

    if isinstance(trigger, AuthRejected):
        if state != SessionState.AUTHENTICATING:
            return unchanged
        return Transition(
            state=SessionState.DISCONNECTED,
            context=SessionContext(),
            commands=(CloseTransport(),),
            events=(trigger.event,),
        )

    if isinstance(trigger, ChannelAdded):
        spec = trigger.spec
        if state != SessionState.READY or spec in context.active:
            # 연결 전/인증 중 추가분은 READY 도달 시 스냅샷으로 구독됨
            return unchanged
        if spec.is_private and not context.authenticated:
            return Transition(
                state=SessionState.AUTHENTICATING,
                context=context,
                commands=(SendAuth(private_filters(snapshot)),),
            )
        return Transition(
            state=state,
            context=context.with_active(context.active + (spec,)),
            commands=(SendSubscribe(spec),),
        )

    if isinstance(trigger, ChannelRemoved):
        spec = trigger.spec
        if state not in (SessionState.READY, SessionState.AUTHENTICATING):
            return unchanged
        if spec not in context.active:
            return unchanged
        return Transition(
            state=state,
            context=context.with_active(tuple(s for s in context.active if s != spec)),
            commands=(SendUnsubscribe(spec),),
        )

    return unchanged
