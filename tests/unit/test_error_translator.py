"""
error_translator 단위 테스트

검증 항목:
- NTGCallsError 메시지는 "error code N", code 속성 보존
- expect_success: 0 통과, 그 외 코드 그대로 에러
- expect_toggle: 0 → CHANGED(True), 1 → NO_OP(False), 그 외 에러
- expect_length: 1 이상 통과, 0 및 음수 에러
"""

from __future__ import annotations

import logging

import pytest

from ntgbridge.native.error_translator import (
    NTGCallsError,
    ToggleOutcome,
    expect_length,
    expect_success,
    expect_toggle,
)


class TestNTGCallsError:
    def test_message_and_code(self):
        error = NTGCallsError(-3)
        assert error.code == -3
        assert str(error) == "error code -3"

    def test_is_runtime_error(self):
        assert isinstance(NTGCallsError(1), RuntimeError)


class TestExpectSuccess:
    def test_zero_passes(self):
        assert expect_success(0) is None

    @pytest.mark.parametrize("code", [1, -1, 2, -100])
    def test_nonzero_raises_with_same_code(self, code: int):
        with pytest.raises(NTGCallsError) as exc_info:
            expect_success(code, "destroy")
        assert exc_info.value.code == code


class TestExpectToggle:
    def test_zero_is_changed(self):
        outcome = expect_toggle(0)
        assert outcome is ToggleOutcome.CHANGED
        assert outcome.changed is True

    def test_one_is_no_op(self):
        outcome = expect_toggle(1)
        assert outcome is ToggleOutcome.NO_OP
        assert outcome.changed is False

    @pytest.mark.parametrize("code", [5, 2, -1])
    def test_other_codes_raise(self, code: int):
        with pytest.raises(NTGCallsError, match=f"error code {code}") as exc_info:
            expect_toggle(code, "pause")
        assert exc_info.value.code == code


class TestExpectLength:
    def test_positive_length_returned(self):
        assert expect_length(42) == 42

    def test_zero_length_is_error(self):
        """길이 0은 빈 성공이 아니라 에러로 취급합니다."""
        with pytest.raises(NTGCallsError) as exc_info:
            expect_length(0, "get_params")
        assert exc_info.value.code == 0

    def test_negative_length_is_error_code(self):
        with pytest.raises(NTGCallsError) as exc_info:
            expect_length(-1, "get_params")
        assert exc_info.value.code == -1


class TestFailureLogging:
    def test_warning_carries_operation_and_code(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ntgbridge.native.error_translator"):
            with pytest.raises(NTGCallsError):
                expect_success(-7, "connect")

        record = caplog.records[-1]
        assert record.operation == "connect"
        assert record.code == -7
        assert "connect 실패" in record.getMessage()

    def test_default_operation_name(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ntgbridge.native.error_translator"):
            with pytest.raises(NTGCallsError):
                expect_toggle(9)

        assert caplog.records[-1].operation == "ntg call"
