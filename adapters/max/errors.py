"""
MAX 클라이언트 에러 정의

REST 호출과 WebSocket 세션에서 공통으로 사용하는 예외 계층.
코어는 재시도하지 않으며, 모든 에러는 호출자에게 전달됨.
"""


class MaxError(Exception):
    """MAX 클라이언트 에러 기본 클래스"""
    pass


class TransportError(MaxError):
    """전송 계층 에러

    연결 실패, 타임아웃, TLS 오류 등 네트워크/IO 실패.
    코어 내부에서 재시도하지 않음.
    """
    pass


class TransportClosed(TransportError):
    """WebSocket 연결 종료

    전송 계층이 소켓 종료나 heartbeat 실패를 감지했을 때 발생.
    """

    def __init__(self, code: int | None = None, reason: str = ""):
        self.code = code
        self.reason = reason
        super().__init__(f"Connection closed (code={code}, reason={reason!r})")


class ApiError(MaxError):
    """MAX API 에러

    서버가 요청을 거부했을 때 발생. 서버 응답을 그대로 전달.
    nonce 재사용/역행 거부도 이 에러로 전달됨 (재시도 정책은 호출자 몫).
    """

    def __init__(self, code: int, message: str, status_code: int | None = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"MAX API Error [{code}]: {message}")


class DecodeError(MaxError):
    """응답/프레임 디코딩 에러

    본문이 기대한 형태와 맞지 않을 때 발생.
    호출/프레임 단위로 전달되며 세션이나 스트림을 종료시키지 않음.
    """

    def __init__(self, message: str, body: str = ""):
        self.message = message
        self.body = body
        super().__init__(message)


class AuthError(MaxError):
    """WebSocket 인증 거부

    세션은 이벤트(AuthErrorEvent)로 전달하고 DISCONNECTED로 전이.
    """

    def __init__(self, messages: list[str] | tuple[str, ...]):
        self.messages = tuple(messages)
        super().__init__("WebSocket authentication rejected: " + "; ".join(self.messages))
