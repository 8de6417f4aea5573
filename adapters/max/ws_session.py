"""
MAX WebSocket 세션

연결 1개에 대한 상태 머신:
DISCONNECTED → CONNECTED → (AUTHENTICATING →) READY → DISCONNECTED → ...

- private 채널이 있으면 인증 후 구독, 없으면 바로 구독
- READY 상태에서 레지스트리 변경은 즉시 증분 구독/해제
- 재연결 시 연결 시점의 현재 레지스트리 스냅샷으로 다시 구독

전이 규칙은 session_plan.plan()에 있고, 이 모듈은 그 결과를 asyncio.Lock 안에서
송신하고 반영하는 역할만 담당.
"""

import asyncio
import logging
from collections import deque
from typing import Any, AsyncIterator, Awaitable, Callable

from adapters.interfaces import IWsTransport
from adapters.max.channels import ChangeAction, ChannelChange, ChannelRegistry, ChannelSpec
from adapters.max.dispatcher import MessageDispatcher
from adapters.max.errors import AuthError, MaxError, TransportClosed
from adapters.max.events import (
    AuthErrorEvent,
    AuthResultEvent,
    InboundEvent,
    SubscriptionErrorEvent,
)
from adapters.max.frames import auth_frame, subscribe_frame, unsubscribe_frame
from adapters.max.nonce import NonceSource
from adapters.max.session_plan import (
    AuthAccepted,
    AuthRejected,
    ChannelAdded,
    ChannelRemoved,
    Closed,
    CloseTransport,
    Command,
    Opened,
    SendAuth,
    SendSubscribe,
    SendUnsubscribe,
    SessionContext,
    Transition,
    Trigger,
    plan,
)
from adapters.max.signer import RequestSigner
from core.constants import Defaults, MaxEndpoints
from core.domain.state_machines import SessionState, SessionStateMachine, StateMachineError

logger = logging.getLogger(__name__)


# 콜백 타입 정의
EventCallback = Callable[[InboundEvent], Awaitable[None]]
StateChangeCallback = Callable[[SessionState], Awaitable[None]]


class WsSession:
    """MAX WebSocket 세션

    이벤트는 on_event 콜백이 있으면 콜백으로만, 없으면 asyncio.Queue로 발행되어
    `async for event in session.events()`로 소비.
    대기열이 max_queued_events에 도달하면 가장 오래된 이벤트를 버림.
    on_event / on_state_change 콜백은 세션 락을 잡은 상태에서 호출되므로
    콜백 안에서 세션 메서드를 await하면 안 됨.

    Args:
        transport: WebSocket 전송 계층 (IWsTransport)
        signer: 요청 서명기 (private 채널 사용 시 필수)
        registry: 채널 레지스트리 (None이면 새로 생성)
        nonce_source: nonce 생성기 (REST 클라이언트와 공유 가능)
        dispatcher: 수신 프레임 디스패처
        url: WebSocket URL
        request_id: 요청 프레임의 id 필드
        on_event: 이벤트 발행 콜백
        on_state_change: 상태 변경 콜백
        max_queued_events: 이벤트 대기열 최대 크기
    """

    def __init__(
        self,
        transport: IWsTransport,
        signer: RequestSigner | None = None,
        registry: ChannelRegistry | None = None,
        nonce_source: NonceSource | None = None,
        dispatcher: MessageDispatcher | None = None,
        url: str = MaxEndpoints.WS_URL,
        request_id: str = "",
        on_event: EventCallback | None = None,
        on_state_change: StateChangeCallback | None = None,
        max_queued_events: int = Defaults.WS_EVENT_QUEUE_SIZE,
    ):
        self.url = url
        self.request_id = request_id
        self.on_event = on_event
        self.on_state_change = on_state_change

        self._transport = transport
        self._signer = signer
        self._registry = registry if registry is not None else ChannelRegistry()
        self._nonce_source = nonce_source or NonceSource()
        self._dispatcher = dispatcher or MessageDispatcher()

        self._machine = SessionStateMachine()
        self._context = SessionContext()
        self._lock = asyncio.Lock()
        self._events: asyncio.Queue[InboundEvent] = asyncio.Queue(maxsize=max_queued_events)
        self.dropped_events = 0

        # 레지스트리 변경 대기열 (다른 스레드에서도 append)
        self._pending: deque[ChannelChange] = deque()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._flush_tasks: set[asyncio.Task[None]] = set()

        self._registry.add_listener(self._on_registry_change)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """현재 세션 상태"""
        return self._machine.current

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._machine.history

    @property
    def is_authenticated(self) -> bool:
        """현재 연결에서 인증 완료 여부"""
        return self._context.authenticated

    @property
    def active_channels(self) -> tuple[ChannelSpec, ...]:
        """현재 연결에서 구독 요청을 보낸 채널"""
        return self._context.active

    # -------------------------------------------------------------------------
    # 연결 관리
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """연결 및 인증/구독 시작

        private 채널이 있으면 인증 프레임을 보내고 AUTHENTICATING,
        없으면 스냅샷 순서대로 구독 후 READY.

        Raises:
            StateMachineError: DISCONNECTED가 아닌 상태에서 호출
            TransportError: 연결 또는 송신 실패 (상태는 DISCONNECTED 유지)
        """
        async with self._lock:
            if self.state != SessionState.DISCONNECTED:
                raise StateMachineError(
                    f"connect() requires {SessionState.DISCONNECTED.value}, "
                    f"current state is {self.state.value}"
                )

            self._loop = asyncio.get_running_loop()
            # 연결 전 변경분은 스냅샷에 이미 반영됨
            self._pending.clear()

            await self._transport.connect(self.url)
            await self._set_state(SessionState.CONNECTED)
            await self._apply(Opened())

    async def disconnect(self) -> None:
        """연결 종료 (이미 DISCONNECTED면 no-op)"""
        async with self._lock:
            if self.state == SessionState.DISCONNECTED:
                return
            await self._transport.close()
            await self._apply(Closed("client disconnect"))

    async def close(self) -> None:
        """연결 종료 및 레지스트리 리스너 해제 (세션 폐기 시)"""
        await self.disconnect()
        self._registry.remove_listener(self._on_registry_change)

    async def __aenter__(self) -> "WsSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # 채널 관리
    # -------------------------------------------------------------------------

    async def subscribe(self, spec: ChannelSpec) -> bool:
        """채널 추가 후 즉시 반영

        Returns:
            레지스트리가 변경되었는지 여부
        """
        changed = self._registry.add(spec)
        await self.flush()
        return changed

    async def unsubscribe(self, spec: ChannelSpec) -> bool:
        """채널 제거 후 즉시 반영

        Returns:
            레지스트리가 변경되었는지 여부
        """
        changed = self._registry.remove(spec)
        await self.flush()
        return changed

    async def flush(self) -> None:
        """대기 중인 레지스트리 변경을 호출 순서대로 반영"""
        async with self._lock:
            while self._pending:
                change = self._pending.popleft()
                trigger: Trigger
                if change.action == ChangeAction.ADDED:
                    trigger = ChannelAdded(change.spec)
                else:
                    trigger = ChannelRemoved(change.spec)
                await self._apply(trigger)

    def _on_registry_change(self, change: ChannelChange) -> None:
        """레지스트리 리스너 (임의 스레드에서 호출될 수 있음)"""
        self._pending.append(change)

        loop = self._loop
        if loop is None or loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._schedule_flush()
        else:
            loop.call_soon_threadsafe(self._schedule_flush)

    def _schedule_flush(self) -> None:
        if self._loop is None:
            return
        task = self._loop.create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._on_flush_done)

    def _on_flush_done(self, task: "asyncio.Task[None]") -> None:
        self._flush_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "구독 변경 반영 실패",
                extra={"error": str(error)},
            )

    # -------------------------------------------------------------------------
    # 수신
    # -------------------------------------------------------------------------

    async def run(self) -> None:
        """수신 루프

        연결이 끊기거나 세션이 DISCONNECTED가 될 때까지 프레임을 처리.
        """
        while self.state != SessionState.DISCONNECTED:
            try:
                raw = await self._transport.recv()
            except TransportClosed as e:
                async with self._lock:
                    await self._apply(Closed(e.reason))
                return

            try:
                await self.handle_frame(raw)
            except TransportClosed:
                # 송신 실패 시 _apply에서 이미 DISCONNECTED로 전이됨
                return

    async def handle_frame(self, raw: str | bytes) -> InboundEvent:
        """수신 프레임 1개 처리

        Args:
            raw: 수신한 텍스트 프레임

        Returns:
            발행한 이벤트
        """
        event = self._dispatcher.dispatch(raw)

        async with self._lock:
            if isinstance(event, SubscriptionErrorEvent) and self.state == SessionState.AUTHENTICATING:
                auth_error = AuthErrorEvent(
                    messages=event.messages,
                    request_id=event.request_id,
                    time=event.time,
                )
                logger.error(
                    "WebSocket 인증 실패",
                    extra={"messages": list(event.messages)},
                )
                await self._apply(AuthRejected(auth_error))
                return auth_error

            await self._publish(event)

            if isinstance(event, AuthResultEvent):
                await self._apply(AuthAccepted())

        return event

    async def events(self) -> AsyncIterator[InboundEvent]:
        """발행된 이벤트 스트림 (소비자가 중단할 때까지)"""
        while True:
            yield await self._events.get()

    def drain_events(self) -> list[InboundEvent]:
        """대기 중인 이벤트를 기다리지 않고 모두 꺼냄"""
        drained: list[InboundEvent] = []
        while True:
            try:
                drained.append(self._events.get_nowait())
            except asyncio.QueueEmpty:
                return drained

    # -------------------------------------------------------------------------
    # 전이 반영 (락 안에서만 호출)
    # -------------------------------------------------------------------------

    async def _apply(self, trigger: Trigger) -> Transition:
        """전이 계획 실행: 명령 송신 → 상태 반영 → 이벤트 발행"""
        transition = plan(self.state, trigger, self._registry.snapshot(), self._context)
        self._context = transition.context

        try:
            for command in transition.commands:
                await self._execute(command)
        except MaxError as e:
            logger.error(
                "세션 명령 송신 실패",
                extra={"trigger": type(trigger).__name__, "error": str(e)},
            )
            await self._abort()
            raise

        if transition.state != self.state:
            await self._set_state(transition.state)

        for event in transition.events:
            await self._publish(event)

        return transition

    async def _execute(self, command: Command) -> None:
        if isinstance(command, SendAuth):
            if self._signer is None:
                raise AuthError(["private channels require credentials"])
            nonce = self._nonce_source.next()
            await self._transport.send(
                auth_frame(self._signer, nonce, self.request_id, command.filters)
            )
            logger.info("WebSocket 인증 요청", extra={"filters": list(command.filters)})

        elif isinstance(command, SendSubscribe):
            await self._transport.send(subscribe_frame([command.spec], self.request_id))
            logger.info("채널 구독 요청", extra={"channel": command.spec.key})

        elif isinstance(command, SendUnsubscribe):
            await self._transport.send(unsubscribe_frame([command.spec], self.request_id))
            logger.info("채널 구독 해제 요청", extra={"channel": command.spec.key})

        elif isinstance(command, CloseTransport):
            await self._transport.close()

    async def _abort(self) -> None:
        """송신 실패 시 연결 종료 및 DISCONNECTED 전이"""
        self._context = SessionContext()
        await self._transport.close()
        if self.state != SessionState.DISCONNECTED:
            await self._set_state(SessionState.DISCONNECTED)

    async def _set_state(self, state: SessionState) -> None:
        """상태 변경 및 콜백 호출"""
        old_state = self.state
        self._machine.transition(state)

        logger.info(
            "WebSocket 세션 상태 변경",
            extra={"old_state": old_state.value, "new_state": state.value},
        )

        if self.on_state_change is not None:
            await self.on_state_change(state)

    async def _publish(self, event: InboundEvent) -> None:
        if self.on_event is not None:
            await self.on_event(event)
            return

        if self._events.full():
            self._events.get_nowait()
            self.dropped_events += 1
            logger.warning(
                "이벤트 대기열 가득 참, 가장 오래된 이벤트 버림",
                extra={"dropped": self.dropped_events, "maxsize": self._events.maxsize},
            )
        self._events.put_nowait(event)
