"""레포지토리 오류 분류 모듈.

Repository fault taxonomy.
Every fault carries a pre-configured status code so the envelope builder
does not need to know which fault maps to which code.

Usage:
    from querystore.utils.exceptions import NotFoundFault
    raise NotFoundFault("User not found")
"""

from fastapi import status


class StoreFault(Exception):
    """레포지토리 오류의 공통 부모 클래스.

    Base class for all repository faults.

    Args:
        message: 오류 메시지 (Error message)
    """

    code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message: str = message or self.default_message
        super().__init__(self.message)

    @property
    def fault(self) -> str:
        """오류 클래스 이름 (Fault class name exposed in envelopes)."""
        return type(self).__name__


class NotFoundFault(StoreFault):
    """404 — 조회 결과가 없을 때 사용.

    Raised when a lookup matched no row.
    """

    code = status.HTTP_404_NOT_FOUND
    default_message = "Record not found"


class InvalidIdentifierFault(StoreFault):
    """400 — 식별자에서 값을 얻을 수 없을 때 사용.

    Raised when a resolved identifier has no value. Always reported
    before any storage call is attempted.
    """

    code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid identifier provided"


class InvalidQuerySpecFault(StoreFault):
    """400 — 필터/정렬/include 명세가 잘못되었을 때 사용.

    Raised for malformed query input: bad operator payloads, unknown
    columns or relations, cyclic or too-deep include specifications.
    """

    code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid query specification"


class ConstraintViolationFault(StoreFault):
    """409 — 고유성/참조 무결성 위반 시 사용.

    Raised when the database rejects a write because of a uniqueness
    or foreign key constraint.
    """

    code = status.HTTP_409_CONFLICT
    default_message = "Constraint violation"


class GenericStoreFault(StoreFault):
    """500 — 그 밖의 모든 저장소 오류.

    Any other storage failure.
    """


class TransactionFailureFault(StoreFault):
    """500 — 트랜잭션 콜백이 실패했을 때 사용.

    Raised by ``BaseRepository.operation`` after the unit has been rolled
    back. The outward message stays generic; the original exception is
    kept on ``cause``.

    Args:
        message: 오류 메시지 (Error message)
        cause: 원래 예외 (Original exception)
    """

    default_message = "Operation failed"

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause: BaseException | None = cause
