"""
ntgcalls C ABI 구조체 정의 모듈입니다.

바이트 레이아웃 (자연 정렬, little-endian 호스트 기준):

    AudioDescriptionBlock (24 bytes)
        [0]  i32 input_mode
        [8]  u64 input_handle      ← 널 종료 source 문자열 주소
        [16] u16 sample_rate
        [18] u8  bits_per_sample
        [19] u8  channel_count

    VideoDescriptionBlock (24 bytes)
        [0]  i32 input_mode
        [8]  u64 input_handle
        [16] u16 width
        [18] u16 height
        [20] u8  fps

    MediaDescriptionC (16 bytes, 값으로 전달)
        [0]  void* audio           ← AudioDescriptionBlock 주소 또는 NULL
        [8]  void* video           ← VideoDescriptionBlock 주소 또는 NULL
"""

import ctypes

AUDIO_BLOCK_SIZE = 24
VIDEO_BLOCK_SIZE = 24
MEDIA_DESCRIPTION_SIZE = 16


class AudioDescriptionBlock(ctypes.Structure):
    """오디오 입력 설명 블록 (ntgcalls AudioDescription)"""
    _fields_ = [
        ('input_mode',      ctypes.c_int32),
        ('input_handle',    ctypes.c_uint64),
        ('sample_rate',     ctypes.c_uint16),
        ('bits_per_sample', ctypes.c_uint8),
        ('channel_count',   ctypes.c_uint8),
    ]


class VideoDescriptionBlock(ctypes.Structure):
    """비디오 입력 설명 블록 (ntgcalls VideoDescription)"""
    _fields_ = [
        ('input_mode',   ctypes.c_int32),
        ('input_handle', ctypes.c_uint64),
        ('width',        ctypes.c_uint16),
        ('height',       ctypes.c_uint16),
        ('fps',          ctypes.c_uint8),
    ]


class MediaDescriptionC(ctypes.Structure):
    """ntg_get_params / ntg_change_stream에 값으로 전달되는 16바이트 디스크립터"""
    _fields_ = [
        ('audio', ctypes.c_void_p),
        ('video', ctypes.c_void_p),
    ]
