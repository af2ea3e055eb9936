"""결과 봉투 생성 유틸리티.

Builders for the result envelope.

Usage:
    from querystore.utils import envelope
    return envelope.success(output=user, code=201)
    return envelope.error(message="User not found", code="NOT_FOUND")
"""

from typing import Any

from fastapi import status

from querystore.schemas.envelope import Envelope

# 심볼릭 상태 코드 테이블 — Symbolic status code table
STATUS_CODES: dict[str, int] = {
    "BAD_ENTRY": status.HTTP_400_BAD_REQUEST,
    "NOT_AUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def _resolve_code(code: int | str | None, default: int) -> int:
    """심볼릭/숫자 코드를 숫자 코드로 변환합니다.

    A numeric code is used as-is, a known symbol goes through the table,
    anything else falls back to ``default``.
    """
    # bool은 int의 하위 타입 — bool is an int subclass, never a status code
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    if isinstance(code, str) and code in STATUS_CODES:
        return STATUS_CODES[code]
    return default


def success(
    output: Any = None,
    message: str | None = None,
    code: int | str | None = None,
) -> Envelope:
    """성공 봉투를 생성합니다.

    Build a success envelope. Code defaults to 200.
    """
    return Envelope(
        status="success",
        code=_resolve_code(code, status.HTTP_200_OK),
        message=message if message is not None else "Successful operation",
        output=output,
    )


def error(
    output: Any = None,
    message: str | None = None,
    code: int | str | None = None,
    error: Any = None,
) -> Envelope:
    """실패 봉투를 생성합니다.

    Build an error envelope. Code defaults to 500. When no error detail is
    given, ``{"message": message}`` is used so the envelope always carries one.
    """
    message = message if message is not None else "Something went wrong"
    return Envelope(
        status="error",
        code=_resolve_code(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        message=message,
        output=output,
        error=error if error is not None else {"message": message},
    )
