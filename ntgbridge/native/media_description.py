"""
미디어 디스크립터(16바이트) 생성 모듈입니다.

역할:
- AudioSource/VideoSource → AudioDescriptionBlock/VideoDescriptionBlock 변환
- 블록 주소를 16바이트 디스크립터의 해당 슬롯에 little-endian으로 기록
- source 문자열 버퍼와 블록을 with 블록이 끝날 때까지 고정(pin)

디스크립터 레이아웃:
    bytes[0:8]   AudioDescriptionBlock 주소 (오디오 없으면 0)
    bytes[8:16]  VideoDescriptionBlock 주소 (비디오 없으면 0)

사용 예시:
    >>> with build_media_description(audio=AudioSource("mic.wav")) as description:
    ...     bindings.change_stream(uid, chat_id, description)
"""

from __future__ import annotations

import ctypes
import logging
import struct
from contextlib import contextmanager
from typing import Iterator, Optional

from ntgbridge.native import AudioSource, VideoSource
from ntgbridge.native.string_buffer import PinnedBuffer, pin_text
from ntgbridge.native.structures import (
    MEDIA_DESCRIPTION_SIZE,
    AudioDescriptionBlock,
    MediaDescriptionC,
    VideoDescriptionBlock,
)

logger = logging.getLogger(__name__)

_AUDIO_SLOT = 0
_VIDEO_SLOT = 8
_SLOT_FORMAT = "<Q"


class MediaDescription:
    """
    16바이트 디스크립터와 그것이 가리키는 메모리를 함께 소유하는 객체입니다.

    release() 전까지 디스크립터 안의 모든 주소(블록, source 문자열)가 유효합니다.
    build_media_description()의 with 블록 안에서만 사용하세요.
    """

    def __init__(self) -> None:
        self._raw = bytearray(MEDIA_DESCRIPTION_SIZE)
        # 블록과 문자열 버퍼 참조 (GC 방지)
        self._blocks: list[ctypes.Structure] = []
        self._strings: list[PinnedBuffer] = []
        self._released = False

    # ── 블록 기록 ──────────────────────────────────────────────────────────

    def attach_audio(self, audio: AudioSource) -> None:
        """오디오 블록을 만들고 주소를 bytes[0:8]에 기록합니다."""
        source = self._pin(audio.source)
        block = AudioDescriptionBlock(
            input_mode=int(audio.type),
            input_handle=source.address,
            sample_rate=audio.sample_rate,
            bits_per_sample=audio.bits_per_sample,
            channel_count=audio.channel_count,
        )
        self._write_slot(_AUDIO_SLOT, block)

    def attach_video(self, video: VideoSource) -> None:
        """비디오 블록을 만들고 주소를 bytes[8:16]에 기록합니다."""
        source = self._pin(video.source)
        block = VideoDescriptionBlock(
            input_mode=int(video.type),
            input_handle=source.address,
            width=video.width,
            height=video.height,
            fps=video.fps,
        )
        self._write_slot(_VIDEO_SLOT, block)

    # ── 조회 ───────────────────────────────────────────────────────────────

    @property
    def audio_address(self) -> int:
        """오디오 블록 주소 (없으면 0)"""
        return struct.unpack_from(_SLOT_FORMAT, self._raw, _AUDIO_SLOT)[0]

    @property
    def video_address(self) -> int:
        """비디오 블록 주소 (없으면 0)"""
        return struct.unpack_from(_SLOT_FORMAT, self._raw, _VIDEO_SLOT)[0]

    @property
    def released(self) -> bool:
        return self._released

    def to_bytes(self) -> bytes:
        """16바이트 디스크립터를 반환합니다."""
        return bytes(self._raw)

    def as_struct(self) -> MediaDescriptionC:
        """네이티브 함수에 값으로 전달할 MediaDescriptionC를 반환합니다."""
        self._ensure_alive()
        return MediaDescriptionC(
            self.audio_address or None,
            self.video_address or None,
        )

    def release(self) -> None:
        """고정된 블록과 문자열 버퍼를 모두 해제합니다."""
        for pinned in self._strings:
            pinned.release()
        self._strings.clear()
        self._blocks.clear()
        self._released = True

    # ── 내부 ───────────────────────────────────────────────────────────────

    def _pin(self, text: str) -> PinnedBuffer:
        self._ensure_alive()
        pinned = pin_text(text)
        self._strings.append(pinned)
        return pinned

    def _write_slot(self, offset: int, block: ctypes.Structure) -> None:
        self._blocks.append(block)
        struct.pack_into(_SLOT_FORMAT, self._raw, offset, ctypes.addressof(block))

    def _ensure_alive(self) -> None:
        if self._released:
            raise RuntimeError("이미 해제된 MediaDescription입니다. with 블록 안에서만 사용하세요.")


@contextmanager
def build_media_description(
    audio: Optional[AudioSource] = None,
    video: Optional[VideoSource] = None,
) -> Iterator[MediaDescription]:
    """
    오디오/비디오 입력으로 MediaDescription을 만들어 with 블록 동안 제공합니다.

    둘 다 None이면 16바이트 모두 0인 디스크립터가 됩니다.
    블록 종료 시(예외 포함) 고정된 메모리를 해제합니다.
    """
    description = MediaDescription()
    try:
        if audio is not None:
            description.attach_audio(audio)
        if video is not None:
            description.attach_video(video)

        logger.debug(
            f"미디어 디스크립터 생성: audio=0x{description.audio_address:X}, "
            f"video=0x{description.video_address:X}"
        )
        yield description
    finally:
        description.release()
