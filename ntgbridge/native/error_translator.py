"""
ntgcalls 반환 코드 해석 모듈입니다.

해석 모드:
- 성공 모드 (destroy, connect, change_stream, stop): 0 = 성공, 그 외 = 에러
- 3상태 모드 (pause, resume, mute, unmute): 0 = 변경됨, 1 = 이미 해당 상태, 그 외 = 에러
- 길이 모드 (get_params): 1 이상 = 기록된 바이트 수, 1 미만 = 에러

코드별 의미는 네이티브 엔진만 알기 때문에 메시지 테이블 없이
숫자 코드만 그대로 보존합니다. 재시도하지 않습니다.
"""

from __future__ import annotations

import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class NTGCallsError(RuntimeError):
    """네이티브 엔진이 성공이 아닌 코드를 반환했을 때 발생합니다."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"error code {code}")


class ToggleOutcome(IntEnum):
    """pause/resume/mute/unmute 결과"""
    CHANGED = 0   # 상태가 바뀜
    NO_OP = 1     # 이미 해당 상태

    @property
    def changed(self) -> bool:
        return self is ToggleOutcome.CHANGED


def expect_success(code: int, operation: str = "") -> None:
    """0이 아니면 NTGCallsError를 발생시킵니다."""
    if code != 0:
        raise _failure(code, operation)


def expect_toggle(code: int, operation: str = "") -> ToggleOutcome:
    """0 → CHANGED, 1 → NO_OP, 그 외 → NTGCallsError"""
    if code == ToggleOutcome.CHANGED:
        return ToggleOutcome.CHANGED
    if code == ToggleOutcome.NO_OP:
        return ToggleOutcome.NO_OP
    raise _failure(code, operation)


def expect_length(length: int, operation: str = "") -> int:
    """
    기록된 바이트 수를 반환합니다.

    1 미만(0 포함)은 에러로 간주하여 NTGCallsError(length)를 발생시킵니다.
    """
    if length < 1:
        raise _failure(length, operation)
    return length


def _failure(code: int, operation: str) -> NTGCallsError:
    operation = operation or "ntg call"
    logger.warning(
        f"{operation} 실패: code={code}",
        extra={"operation": operation, "code": code},
    )
    return NTGCallsError(code)
