"""
네이티브 ntgcalls 브리지 패키지

공통 데이터 타입 정의:
- SourceType: 네이티브 엔진이 source 문자열을 해석하는 방식
- AudioSource: 오디오 입력 명세
- VideoSource: 비디오 입력 명세
- MediaSources: 오디오/비디오 입력 묶음 (둘 다 선택)
- StreamType, StreamStatus: 상태 조회 API용 예약 열거형 (현재 미사용)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

# 바이너리 필드 폭별 최대값
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF


class SourceType(IntEnum):
    """입력 모드 (AudioDescriptionBlock/VideoDescriptionBlock.input_mode)"""
    FILE = 0
    SHELL = 1
    FFMPEG = 2


class StreamType(IntEnum):
    """스트림 종류 (예약: 이 계층의 어떤 연산도 사용하지 않음)"""
    AUDIO = 0
    VIDEO = 1


class StreamStatus(IntEnum):
    """스트림 상태 (예약: 이 계층의 어떤 연산도 사용하지 않음)"""
    PLAYING = 0
    PAUSED = 1
    IDLING = 2


def _check_range(name: str, value: int, maximum: int) -> None:
    # bool은 int의 하위 타입이므로 따로 거부
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}는 정수여야 합니다. 입력값: {value!r}")
    if not 0 <= value <= maximum:
        raise ValueError(f"{name}는 0~{maximum} 범위여야 합니다. 입력값: {value}")


def _coerce_source_type(value) -> SourceType:
    try:
        return SourceType(value)
    except ValueError as exc:
        allowed = [member.value for member in SourceType]
        raise ValueError(
            f"type은 {allowed} 중 하나여야 합니다. 입력값: {value!r}"
        ) from exc


@dataclass
class AudioSource:
    """
    오디오 입력 명세입니다.

    필드:
        source: 파일 경로, 셸 명령 또는 FFmpeg 인자 (type에 따라 해석)
        type: 입력 모드 (기본값 SourceType.FILE)
        sample_rate: 샘플링레이트 (Hz, 기본값 48000, u16)
        bits_per_sample: 비트뎁스 (기본값 16, u8)
        channel_count: 채널 수 (기본값 2, u8)
    """
    source: str
    type: SourceType = SourceType.FILE
    sample_rate: int = 48000
    bits_per_sample: int = 16
    channel_count: int = 2

    def __post_init__(self) -> None:
        self.type = _coerce_source_type(self.type)
        _check_range("sample_rate", self.sample_rate, _U16_MAX)
        _check_range("bits_per_sample", self.bits_per_sample, _U8_MAX)
        _check_range("channel_count", self.channel_count, _U8_MAX)


@dataclass
class VideoSource:
    """
    비디오 입력 명세입니다.

    필드:
        source: 파일 경로, 셸 명령 또는 FFmpeg 인자 (type에 따라 해석)
        type: 입력 모드 (기본값 SourceType.FILE)
        width: 가로 픽셀 수 (기본값 1280, u16)
        height: 세로 픽셀 수 (기본값 720, u16)
        fps: 초당 프레임 수 (기본값 24, u8)
    """
    source: str
    type: SourceType = SourceType.FILE
    width: int = 1280
    height: int = 720
    fps: int = 24

    def __post_init__(self) -> None:
        self.type = _coerce_source_type(self.type)
        _check_range("width", self.width, _U16_MAX)
        _check_range("height", self.height, _U16_MAX)
        _check_range("fps", self.fps, _U8_MAX)


@dataclass
class MediaSources:
    """get_params / set_sources에 전달하는 오디오/비디오 입력 묶음입니다."""
    audio: Optional[AudioSource] = None
    video: Optional[VideoSource] = None
