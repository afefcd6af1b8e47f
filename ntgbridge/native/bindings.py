"""
ntgcalls 공유 라이브러리 ctypes 바인딩 모듈입니다.

역할:
- libntgcalls 공유 라이브러리 로드 (플랫폼별 확장자 처리, 프로세스당 1회)
- 고정된 진입점 테이블(ENTRY_POINTS)의 argtypes/restype 선언
- NativeBindings: 진입점을 호출하고 원시 반환 코드/길이를 그대로 반환
  (코드 해석은 error_translator 담당)

라이브러리 파일명:
    Linux:   libntgcalls.so
    macOS:   libntgcalls.dylib
    Windows: libntgcalls.dll

진입점 (C ABI):
    u32 ntg_init()
    i32 ntg_destroy(u32 uid)
    i32 ntg_get_params(u32 uid, i64 chatID, MediaDescription desc, char* buffer, i32 size)
    i32 ntg_connect(u32 uid, i64 chatID, char* params)
    i32 ntg_change_stream(u32 uid, i64 chatID, MediaDescription desc)
    i32 ntg_pause / ntg_resume / ntg_mute / ntg_unmute / ntg_stop(u32 uid, i64 chatID)
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import platform
import threading
from typing import Callable, Optional

from ntgbridge.config.schema import NativeConfig
from ntgbridge.native.media_description import MediaDescription
from ntgbridge.native.string_buffer import PinnedBuffer
from ntgbridge.native.structures import MediaDescriptionC

logger = logging.getLogger(__name__)

# =============================================================================
# 예외 클래스
# =============================================================================

class NativeLoadError(RuntimeError):
    """네이티브 라이브러리 초기화 실패 (복구 불가능한 시작 오류)"""


class NativeLibraryNotFoundError(NativeLoadError):
    """ntgcalls 공유 라이브러리를 찾거나 로드할 수 없을 때 발생합니다."""


class NativeSymbolNotFoundError(NativeLoadError):
    """라이브러리에 필요한 진입점이 없을 때 발생합니다."""


# =============================================================================
# ctypes 기본 타입
# =============================================================================

UID    = ctypes.c_uint32
CHATID = ctypes.c_int64
RESULT = ctypes.c_int32
BUFFER = ctypes.POINTER(ctypes.c_char)

# 진입점 이름 → (restype, argtypes)
ENTRY_POINTS: dict[str, tuple] = {
    'ntg_init':          (UID,    []),
    'ntg_destroy':       (RESULT, [UID]),
    'ntg_get_params':    (RESULT, [UID, CHATID, MediaDescriptionC, BUFFER, ctypes.c_int32]),
    'ntg_connect':       (RESULT, [UID, CHATID, BUFFER]),
    'ntg_change_stream': (RESULT, [UID, CHATID, MediaDescriptionC]),
    'ntg_pause':         (RESULT, [UID, CHATID]),
    'ntg_resume':        (RESULT, [UID, CHATID]),
    'ntg_mute':          (RESULT, [UID, CHATID]),
    'ntg_unmute':        (RESULT, [UID, CHATID]),
    'ntg_stop':          (RESULT, [UID, CHATID]),
}

# platform.system() → 공유 라이브러리 확장자
LIBRARY_EXTENSIONS: dict[str, str] = {
    'Darwin':  'dylib',
    'Windows': 'dll',
}


# =============================================================================
# 라이브러리 로드
# =============================================================================

_native_lib: Optional[ctypes.CDLL] = None
_bindings: Optional['NativeBindings'] = None
_load_lock = threading.RLock()


def library_filename(name: str = 'ntgcalls', system: Optional[str] = None) -> str:
    """플랫폼별 공유 라이브러리 파일명을 반환합니다. (예: libntgcalls.so)"""
    system = system or platform.system()
    ext = LIBRARY_EXTENSIONS.get(system, 'so')
    return f"lib{name}.{ext}"


def _load_library(config: Optional[NativeConfig] = None) -> ctypes.CDLL:
    """ntgcalls 공유 라이브러리를 로드합니다. 캐싱하여 재사용합니다."""
    global _native_lib
    with _load_lock:
        if _native_lib is not None:
            return _native_lib

        config = config or NativeConfig()
        if config.library_path:
            candidates = [config.library_path]
        else:
            filename = library_filename(config.library_name)
            found = ctypes.util.find_library(config.library_name)
            candidates = [found, filename] if found else [filename]

        last_error: Optional[OSError] = None
        for lib_path in candidates:
            try:
                _native_lib = ctypes.CDLL(lib_path)
            except OSError as exc:
                logger.debug(f"ntgcalls 로드 실패: {lib_path} ({exc})")
                last_error = exc
                continue
            logger.info(f"ntgcalls 라이브러리 로드 완료: {lib_path}")
            return _native_lib

        logger.error(f"ntgcalls 라이브러리를 로드할 수 없습니다: {candidates}")
        raise NativeLibraryNotFoundError(
            f"ntgcalls 라이브러리를 로드할 수 없습니다: {', '.join(candidates)}\n"
            "native.library_path 설정 또는 NTG_NATIVE_LIBRARY_PATH 환경변수로 "
            "경로를 지정하세요."
        ) from last_error


def is_library_available(config: Optional[NativeConfig] = None) -> bool:
    """ntgcalls 라이브러리가 로드 가능한지 확인합니다."""
    try:
        _load_library(config)
        return True
    except NativeLibraryNotFoundError:
        return False


def get_bindings(config: Optional[NativeConfig] = None) -> 'NativeBindings':
    """
    프로세스 전역 NativeBindings를 반환합니다. 첫 호출에서만 로드/해석합니다.

    이후 호출의 config는 무시됩니다. 라이브러리는 프로세스 종료 전까지 해제하지 않습니다.

    예외:
        NativeLibraryNotFoundError: 라이브러리가 없을 때
        NativeSymbolNotFoundError: 진입점이 없을 때
    """
    global _bindings
    with _load_lock:
        if _bindings is None:
            _bindings = NativeBindings(_load_library(config))
        elif config is not None:
            logger.debug("NativeBindings가 이미 초기화되어 있어 config를 무시합니다")
        return _bindings


# =============================================================================
# 진입점 테이블 래퍼
# =============================================================================

class NativeBindings:
    """
    해석된 ntgcalls 진입점 테이블입니다.

    각 메서드는 진입점을 동기 호출하고 원시 반환값을 그대로 돌려줍니다.
    호출 중 전달된 주소(디스크립터 블록, 문자열 버퍼)는 호출자가 유지해야 합니다.
    생성 후 테이블은 변경되지 않으므로 여러 스레드에서 읽어도 안전합니다.
    """

    def __init__(self, lib: ctypes.CDLL) -> None:
        self._lib = lib
        self._functions: dict[str, Callable[..., int]] = {}

        for name, (restype, argtypes) in ENTRY_POINTS.items():
            try:
                fn = getattr(lib, name)
            except AttributeError as exc:
                logger.error(f"ntgcalls 진입점을 찾을 수 없습니다: {name}")
                raise NativeSymbolNotFoundError(
                    f"{name}를 찾을 수 없습니다. ntgcalls 라이브러리 버전을 확인하세요."
                ) from exc
            fn.restype  = restype
            fn.argtypes = argtypes
            self._functions[name] = fn

        logger.debug(f"ntgcalls 진입점 {len(self._functions)}개 해석 완료")

    def init(self) -> int:
        """ntg_init() → 세션 ID (u32)"""
        return self._functions['ntg_init']()

    def destroy(self, uid: int) -> int:
        return self._functions['ntg_destroy'](uid)

    def get_params(
        self,
        uid: int,
        chat_id: int,
        description: MediaDescription,
        buffer: ctypes.Array,
        size: int,
    ) -> int:
        """ntg_get_params() → 기록된 바이트 수 (음수 = 에러 코드). 출력은 널 종료되지 않음."""
        return self._functions['ntg_get_params'](
            uid, chat_id, description.as_struct(), buffer, size,
        )

    def connect(self, uid: int, chat_id: int, params: PinnedBuffer) -> int:
        return self._functions['ntg_connect'](uid, chat_id, params.buffer)

    def change_stream(self, uid: int, chat_id: int, description: MediaDescription) -> int:
        return self._functions['ntg_change_stream'](uid, chat_id, description.as_struct())

    def pause(self, uid: int, chat_id: int) -> int:
        return self._functions['ntg_pause'](uid, chat_id)

    def resume(self, uid: int, chat_id: int) -> int:
        return self._functions['ntg_resume'](uid, chat_id)

    def mute(self, uid: int, chat_id: int) -> int:
        return self._functions['ntg_mute'](uid, chat_id)

    def unmute(self, uid: int, chat_id: int) -> int:
        return self._functions['ntg_unmute'](uid, chat_id)

    def stop(self, uid: int, chat_id: int) -> int:
        return self._functions['ntg_stop'](uid, chat_id)
