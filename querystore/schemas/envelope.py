"""결과 봉투(Result Envelope) 스키마.

Result envelope schema returned by every repository call.
Callers branch on ``envelope.error``; its absence is the only success signal.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator


class Envelope(BaseModel):
    """성공/실패 공통 응답 봉투.

    Uniform success/error container.

    Attributes:
        status: "success" 또는 "error" (Outcome flag)
        code: 숫자 상태 코드 (Numeric status code)
        message: 사람이 읽을 수 있는 메시지 (Human-readable message)
        output: 결과 값 (Result payload, any type)
        error: 오류 상세 — 실패 시에만 존재 (Error detail, present only on failure)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    status: Literal["success", "error"]
    code: int
    message: str
    output: Any = None
    error: Any = None

    @model_validator(mode="after")
    def _check_status_matches_error(self) -> "Envelope":
        # status == "success" iff error is None
        if (self.status == "success") != (self.error is None):
            raise ValueError("status must be 'success' exactly when error is absent")
        return self

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None
