"""
네이티브 호출에 넘길 널 종료 문자열 버퍼 모듈입니다.

역할:
- 텍스트를 UTF-8 + 단일 '\\0' 종료 바이트로 인코딩
- 인코딩된 바이트를 고정 크기 ctypes c_char 배열에 복사하여 주소 고정
- 주소는 PinnedBuffer가 살아 있는 동안(with 블록 안)에만 유효

ctypes 배열은 생성 후 이동하지 않으므로 Python 참조가 유지되는 한
addressof() 값이 안정적입니다. 네이티브 쪽으로 소유권은 넘어가지 않습니다.

사용 예시:
    >>> with pin_text("mic.wav") as pinned:
    ...     lib.ntg_connect(uid, chat_id, pinned.buffer)
"""

from __future__ import annotations

import ctypes
from typing import Optional


def encode_text(text: str) -> bytes:
    """텍스트를 UTF-8로 인코딩하고 '\\0' 종료 바이트 하나를 덧붙입니다."""
    return text.encode("utf-8") + b"\0"


class PinnedBuffer:
    """
    주소가 고정된 바이트 버퍼입니다.

    release() 또는 with 블록 종료 전까지 buffer/address가 유효합니다.
    """

    def __init__(self, data: bytes) -> None:
        self._size = len(data)
        self._buffer: Optional[ctypes.Array] = (ctypes.c_char * self._size).from_buffer_copy(data)

    @property
    def buffer(self) -> ctypes.Array:
        """네이티브 함수 인자로 직접 전달할 c_char 배열"""
        if self._buffer is None:
            raise RuntimeError("이미 해제된 버퍼입니다.")
        return self._buffer

    @property
    def address(self) -> int:
        """버퍼 시작 주소 (정수)"""
        return ctypes.addressof(self.buffer)

    @property
    def size(self) -> int:
        """종료 바이트를 포함한 바이트 수"""
        return self._size

    @property
    def released(self) -> bool:
        return self._buffer is None

    def release(self) -> None:
        """버퍼 참조를 해제합니다. 이후 address 값은 더 이상 유효하지 않습니다."""
        self._buffer = None

    def __enter__(self) -> "PinnedBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def pin_text(text: str) -> PinnedBuffer:
    """텍스트를 널 종료 인코딩하여 주소가 고정된 PinnedBuffer로 반환합니다."""
    return PinnedBuffer(encode_text(text))
