"""
ntgcalls 네이티브 세션 모듈입니다.

역할:
- 생성 시 ntg_init()으로 네이티브 세션 ID를 1개 획득
- 미디어 디스크립터 생성 → 진입점 호출 → 반환 코드 해석을 하나의 공개 연산으로 조합
- 채팅별 상태(연결/일시정지/중지)는 추적하지 않음. 상태 전이는 네이티브 엔진이 판단

스레드 안전성:
    이 계층은 락을 사용하지 않습니다. 같은 세션을 여러 스레드에서 사용할 경우
    호출자가 세션 단위로 직렬화해야 합니다.

사용 예시:
    >>> with NativeSession() as session:
    ...     params = session.get_params(chat_id, MediaSources(audio=AudioSource("mic.wav")))
    ...     session.connect(chat_id, remote_params)
    ...     session.pause(chat_id)
"""

from __future__ import annotations

import ctypes
from typing import Optional

from ntgbridge.config.schema import AppConfig
from ntgbridge.logging.structured_logger import StructuredLogger
from ntgbridge.native import MediaSources
from ntgbridge.native.bindings import NativeBindings, get_bindings
from ntgbridge.native.error_translator import (
    NTGCallsError,
    expect_length,
    expect_success,
    expect_toggle,
)
from ntgbridge.native.media_description import build_media_description
from ntgbridge.native.string_buffer import pin_text


class SessionDestroyedError(RuntimeError):
    """destroy()가 성공한 세션을 다시 사용하려 할 때 발생합니다."""


class NativeSession:
    """
    네이티브 ntgcalls 세션 하나를 소유하는 호출자용 핸들입니다.

    모든 연산은 동기 호출이며 네이티브 진입점이 반환할 때까지 블록됩니다.
    성공이 아닌 반환 코드는 즉시 NTGCallsError(code)로 전파되고 재시도하지 않습니다.
    """

    def __init__(
        self,
        bindings: Optional[NativeBindings] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        """
        네이티브 세션을 생성합니다.

        파라미터:
            bindings: 사용할 진입점 테이블. None이면 프로세스 전역 테이블 사용
            config: 애플리케이션 설정. None이면 기본값

        예외:
            NativeLoadError: 라이브러리/진입점 로드 실패 시
        """
        self._config = config or AppConfig()
        self._bindings = bindings or get_bindings(self._config.native)
        self._params_buffer_size = self._config.native.params_buffer_size

        self._uid: int = self._bindings.init()
        self._destroyed: bool = False
        self._log = StructuredLogger.for_session(__name__, self._uid)

        self._log.info(f"ntgcalls 세션 생성: uid={self._uid}")

    @property
    def uid(self) -> int:
        """네이티브 세션 ID (ntg_init 반환값)"""
        return self._uid

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # =========================================================================
    # 공개 연산
    # =========================================================================

    def get_params(self, chat_id: int, sources: Optional[MediaSources] = None) -> str:
        """
        채팅의 연결 파라미터를 요청합니다.

        파라미터:
            chat_id: 채팅 ID (i64)
            sources: 오디오/비디오 입력 (None이면 입력 없음)

        반환값:
            str: 네이티브가 기록한 length 바이트를 UTF-8로 디코딩한 문자열

        예외:
            NTGCallsError: 반환 길이가 1 미만일 때 (code = 반환 길이)
        """
        self._ensure_alive()
        sources = sources or MediaSources()
        buffer = ctypes.create_string_buffer(self._params_buffer_size)

        with build_media_description(sources.audio, sources.video) as description:
            length = self._bindings.get_params(
                self._uid, chat_id, description, buffer, self._params_buffer_size,
            )

        length = expect_length(length, "get_params")
        if length > self._params_buffer_size:
            self._log.warning(
                f"get_params 출력이 버퍼보다 큽니다: length={length}, "
                f"buffer={self._params_buffer_size}. 앞 {self._params_buffer_size}바이트만 사용합니다.",
                extra={"chat_id": chat_id, "length": length},
            )
        self._log.debug(f"get_params 완료: chat_id={chat_id}, length={length}")
        return buffer.raw[:length].decode("utf-8", errors="replace")

    def connect(self, chat_id: int, params: str) -> None:
        """상대측과 협상한 파라미터로 채팅에 연결합니다."""
        self._ensure_alive()
        with pin_text(params) as pinned:
            code = self._bindings.connect(self._uid, chat_id, pinned)
        expect_success(code, "connect")
        self._log.info(f"채팅 연결 완료: uid={self._uid}, chat_id={chat_id}")

    def set_sources(self, chat_id: int, sources: Optional[MediaSources] = None) -> None:
        """채팅의 활성 오디오/비디오 입력을 교체합니다. (ntg_change_stream)"""
        self._ensure_alive()
        sources = sources or MediaSources()
        with build_media_description(sources.audio, sources.video) as description:
            code = self._bindings.change_stream(self._uid, chat_id, description)
        expect_success(code, "change_stream")
        self._log.info(f"입력 변경 완료: uid={self._uid}, chat_id={chat_id}")

    def pause(self, chat_id: int) -> bool:
        """일시정지합니다. 상태가 바뀌면 True, 이미 일시정지 상태면 False."""
        return self._toggle("pause", chat_id)

    def resume(self, chat_id: int) -> bool:
        """재개합니다. 상태가 바뀌면 True, 이미 재생 중이면 False."""
        return self._toggle("resume", chat_id)

    def mute(self, chat_id: int) -> bool:
        """음소거합니다. 상태가 바뀌면 True, 이미 음소거 상태면 False."""
        return self._toggle("mute", chat_id)

    def unmute(self, chat_id: int) -> bool:
        """음소거를 해제합니다. 상태가 바뀌면 True, 이미 해제 상태면 False."""
        return self._toggle("unmute", chat_id)

    def stop(self, chat_id: int) -> None:
        """채팅 스트림을 중지합니다."""
        self._ensure_alive()
        expect_success(self._bindings.stop(self._uid, chat_id), "stop")
        self._log.info(f"채팅 중지 완료: uid={self._uid}, chat_id={chat_id}")

    def destroy(self) -> None:
        """
        네이티브 세션을 해제합니다.

        성공한 뒤에는 이 핸들을 다시 사용할 수 없습니다(SessionDestroyedError).
        실패하면(NTGCallsError) 핸들은 그대로 유효합니다.
        """
        self._ensure_alive()
        expect_success(self._bindings.destroy(self._uid), "destroy")
        self._destroyed = True
        self._log.info(f"ntgcalls 세션 해제: uid={self._uid}")

    # =========================================================================
    # 컨텍스트 매니저
    # =========================================================================

    def __enter__(self) -> "NativeSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._destroyed:
            return
        if exc_type is None:
            self.destroy()
            return
        # 처리 중인 예외가 있으면 그 예외를 우선 전파
        try:
            self.destroy()
        except NTGCallsError as destroy_error:
            self._log.warning(f"세션 해제 실패 (uid={self._uid}): {destroy_error}")

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "active"
        return f"NativeSession(uid={self._uid}, {state})"

    # =========================================================================
    # 내부 헬퍼
    # =========================================================================

    def _toggle(self, operation: str, chat_id: int) -> bool:
        self._ensure_alive()
        code = getattr(self._bindings, operation)(self._uid, chat_id)
        outcome = expect_toggle(code, operation)
        self._log.debug(f"{operation}: chat_id={chat_id}, outcome={outcome.name}")
        return outcome.changed

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise SessionDestroyedError(f"이미 해제된 세션입니다: uid={self._uid}")
