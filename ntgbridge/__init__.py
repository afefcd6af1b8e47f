"""
ntgcalls-bridge: ntgcalls 네이티브 통화 엔진용 ctypes 브리지

사용 예시:
    >>> from ntgbridge import AudioSource, MediaSources, NativeSession
    >>> with NativeSession() as session:
    ...     params = session.get_params(-100123, MediaSources(audio=AudioSource("mic.wav")))
"""

from ntgbridge.native import (
    AudioSource,
    MediaSources,
    SourceType,
    StreamStatus,
    StreamType,
    VideoSource,
)
from ntgbridge.native.bindings import (
    NativeLibraryNotFoundError,
    NativeLoadError,
    NativeSymbolNotFoundError,
    is_library_available,
)
from ntgbridge.native.error_translator import NTGCallsError, ToggleOutcome
from ntgbridge.native.session import NativeSession, SessionDestroyedError

__version__ = "0.1.0"

__all__ = [
    "AudioSource",
    "MediaSources",
    "NTGCallsError",
    "NativeLibraryNotFoundError",
    "NativeLoadError",
    "NativeSession",
    "NativeSymbolNotFoundError",
    "SessionDestroyedError",
    "SourceType",
    "StreamStatus",
    "StreamType",
    "ToggleOutcome",
    "VideoSource",
    "is_library_available",
]
