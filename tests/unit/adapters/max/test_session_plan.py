"""
세션 전이 계획 테스트

IO 없이 (상태, 트리거) → (상태, 명령, 이벤트) 규칙 검증.
"""

from adapters.max.channels import ChannelSpec
from adapters.max.events import AuthErrorEvent
from adapters.max.session_plan import (
    AuthAccepted,
    AuthRejected,
    ChannelAdded,
    ChannelRemoved,
    Closed,
    CloseTransport,
    Opened,
    SendAuth,
    SendSubscribe,
    SendUnsubscribe,
    SessionContext,
    plan,
    private_filters,
)
from core.domain.state_machines import SessionState


ORDER = ChannelSpec.private("order")
ACCOUNT = ChannelSpec.private("account")
TRADE = ChannelSpec.trade("btcusdt")
TICKER = ChannelSpec.ticker("ethusdt")


class TestOpened:
    """연결 직후 전이 테스트"""

    def test_public_only_subscribes_and_ready(self) -> None:
        """public만 있으면 스냅샷 순서대로 구독 후 READY"""
        result = plan(SessionState.CONNECTED, Opened(), (TRADE, TICKER), SessionContext())

        assert result.state == SessionState.READY
        assert result.commands == (SendSubscribe(TRADE), SendSubscribe(TICKER))
        assert result.context.active == (TRADE, TICKER)

    def test_private_requires_auth(self) -> None:
        """private이 있으면 인증부터"""
        result = plan(SessionState.CONNECTED, Opened(), (ORDER, TRADE), SessionContext())

        assert result.state == SessionState.AUTHENTICATING
        assert result.commands == (SendAuth(("order",)),)
        assert result.subscribes == ()

    def test_empty_registry_ready(self) -> None:
        """채널이 없으면 바로 READY"""
        result = plan(SessionState.CONNECTED, Opened(), (), SessionContext())

        assert result.state == SessionState.READY
        assert result.commands == ()

    def test_ignored_outside_connected(self) -> None:
        """CONNECTED가 아니면 변화 없음"""
        result = plan(SessionState.READY, Opened(), (TRADE,), SessionContext())

        assert result.state == SessionState.READY
        assert result.commands == ()


class TestAuthOutcome:
    """인증 결과 전이 테스트"""

    def test_accepted_subscribes_all(self) -> None:
        """인증 성공 시 private 포함 전체 구독"""
        result = plan(
            SessionState.AUTHENTICATING, AuthAccepted(), (ORDER, TRADE), SessionContext()
        )

        assert result.state == SessionState.READY
        assert result.context.authenticated is True
        assert result.subscribes == (ORDER, TRADE)

    def test_accepted_after_upgrade_skips_active(self) -> None:
        """이미 구독한 채널은 다시 구독하지 않음"""
        context = SessionContext(authenticated=False, active=(TRADE,))

        result = plan(SessionState.AUTHENTICATING, AuthAccepted(), (TRADE, ORDER), context)

        assert result.subscribes == (ORDER,)
        assert result.context.active == (TRADE, ORDER)

    def test_rejected(self) -> None:
        """인증 실패 시 연결 종료와 에러 이벤트 1개"""
        error = AuthErrorEvent(messages=("invalid signature",))

        result = plan(
            SessionState.AUTHENTICATING, AuthRejected(error), (ORDER,), SessionContext()
        )

        assert result.state == SessionState.DISCONNECTED
        assert result.commands == (CloseTransport(),)
        assert result.events == (error,)

    def test_accepted_ignored_when_ready(self) -> None:
        """AUTHENTICATING이 아니면 인증 응답 무시"""
        context = SessionContext(authenticated=True, active=(ORDER,))

        result = plan(SessionState.READY, AuthAccepted(), (ORDER,), context)

        assert result.state == SessionState.READY
        assert result.commands == ()


class TestClosed:
    """연결 종료 전이 테스트"""

    def test_any_state_to_disconnected(self) -> None:
        """모든 상태에서 DISCONNECTED, 컨텍스트 초기화"""
        context = SessionContext(authenticated=True, active=(ORDER, TRADE))

        for state in SessionState:
            result = plan(state, Closed("lost"), (ORDER, TRADE), context)

            assert result.state == SessionState.DISCONNECTED
            assert result.context == SessionContext()
            assert result.commands == ()


class TestChannelChanges:
    """READY 상태 증분 구독 테스트"""

    def test_add_public_when_ready(self) -> None:
        """READY에서 public 추가는 즉시 구독"""
        context = SessionContext(active=(TRADE,))

        result = plan(SessionState.READY, ChannelAdded(TICKER), (TRADE, TICKER), context)

        assert result.state == SessionState.READY
        assert result.commands == (SendSubscribe(TICKER),)
        assert result.context.active == (TRADE, TICKER)

    def test_add_private_when_authenticated(self) -> None:
        """인증된 세션에 private 추가는 즉시 구독"""
        context = SessionContext(authenticated=True, active=(ORDER,))

        result = plan(SessionState.READY, ChannelAdded(ACCOUNT), (ORDER, ACCOUNT), context)

        assert result.commands == (SendSubscribe(ACCOUNT),)

    def test_add_private_when_unauthenticated(self) -> None:
        """미인증 세션에 private 추가는 인증 재진입"""
        context = SessionContext(active=(TRADE,))

        result = plan(SessionState.READY, ChannelAdded(ORDER), (TRADE, ORDER), context)

        assert result.state == SessionState.AUTHENTICATING
        assert result.commands == (SendAuth(("order",)),)

    def test_add_while_authenticating_deferred(self) -> None:
        """인증 중 추가분은 READY 도달 시 반영"""
        result = plan(
            SessionState.AUTHENTICATING, ChannelAdded(TICKER), (ORDER, TICKER), SessionContext()
        )

        assert result.commands == ()
        assert result.state == SessionState.AUTHENTICATING

    def test_add_while_disconnected_no_command(self) -> None:
        """연결 전 추가는 명령 없음"""
        result = plan(SessionState.DISCONNECTED, ChannelAdded(TICKER), (TICKER,), SessionContext())

        assert result.commands == ()
        assert result.state == SessionState.DISCONNECTED

    def test_add_already_active(self) -> None:
        """이미 구독 중이면 명령 없음"""
        context = SessionContext(active=(TRADE,))

        result = plan(SessionState.READY, ChannelAdded(TRADE), (TRADE,), context)

        assert result.commands == ()

    def test_remove_active(self) -> None:
        """구독 중 채널 제거는 해제 요청"""
        context = SessionContext(active=(TRADE, TICKER))

        result = plan(SessionState.READY, ChannelRemoved(TRADE), (TICKER,), context)

        assert result.commands == (SendUnsubscribe(TRADE),)
        assert result.context.active == (TICKER,)

    def test_remove_inactive(self) -> None:
        """구독하지 않은 채널 제거는 명령 없음"""
        result = plan(SessionState.READY, ChannelRemoved(TRADE), (), SessionContext())

        assert result.commands == ()


class TestPrivateFilters:
    """인증 filters 테스트"""

    def test_unique_in_order(self) -> None:
        """private 채널 이름만, 중복 없이 순서 유지"""
        snapshot = (TRADE, ACCOUNT, ORDER, ChannelSpec.private("trade"))

        assert private_filters(snapshot) == ("account", "order", "trade")
