# crud 계층 예외. 라우터가 rollback 후 HTTPException(status_code, message)으로 변환.


class CrudError(Exception):
    """crud 계층 공통 예외 (메시지 + HTTP 상태 코드)."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CrudError):
    """입력값 오류. 저장 전에 발생하므로 부분 저장 없음."""

    status_code = 400


class NotFound(CrudError):
    status_code = 404


class Forbidden(CrudError):
    """인증은 됐지만 역할/멤버십이 부족함."""

    status_code = 403


class Conflict(CrudError):
    """이미 참여 중 (roster 유니크 위반)."""

    status_code = 400


class CapacityExceeded(CrudError):
    status_code = 400


class NotInEvent(CrudError):
    """참여 기록 없음."""

    status_code = 400
