"""
ntgcalls bindings 단위 테스트

검증 항목:
- 플랫폼별 라이브러리 파일명 (so / dylib / dll)
- library_path 지정 시 해당 경로로 로드
- find_library 결과 → 기본 파일명 순서로 시도
- 로드 실패 시 NativeLibraryNotFoundError, is_library_available() False
- 로드 결과 캐싱, get_bindings() 프로세스 전역 단일 인스턴스
- 진입점 restype/argtypes 선언 확인
- 진입점 누락 시 NativeSymbolNotFoundError
- NativeBindings 메서드는 원시 반환값을 그대로 전달
"""

from __future__ import annotations

import ctypes
from unittest.mock import MagicMock, patch

import pytest

import ntgbridge.native.bindings as bindings_module
from ntgbridge.config.schema import NativeConfig
from ntgbridge.native import AudioSource
from ntgbridge.native.bindings import (
    ENTRY_POINTS,
    NativeBindings,
    NativeLibraryNotFoundError,
    NativeSymbolNotFoundError,
    _load_library,
    get_bindings,
    is_library_available,
    library_filename,
)
from ntgbridge.native.media_description import build_media_description
from ntgbridge.native.string_buffer import pin_text
from ntgbridge.native.structures import AudioDescriptionBlock, MediaDescriptionC


# =============================================================================
# 픽스처
# =============================================================================

@pytest.fixture
def fresh_loader():
    """모듈 전역 캐시(_native_lib, _bindings)를 비운 상태로 테스트하고 복원합니다."""
    original_lib = bindings_module._native_lib
    original_bindings = bindings_module._bindings
    bindings_module._native_lib = None
    bindings_module._bindings = None
    try:
        yield
    finally:
        bindings_module._native_lib = original_lib
        bindings_module._bindings = original_bindings


# =============================================================================
# 라이브러리 로드
# =============================================================================

class TestLibraryFilename:
    @pytest.mark.parametrize("system, expected", [
        ("Linux",   "libntgcalls.so"),
        ("Darwin",  "libntgcalls.dylib"),
        ("Windows", "libntgcalls.dll"),
        ("FreeBSD", "libntgcalls.so"),
    ])
    def test_platform_extension(self, system: str, expected: str):
        assert library_filename("ntgcalls", system) == expected

    def test_uses_current_platform_by_default(self):
        with patch("platform.system", return_value="Darwin"):
            assert library_filename() == "libntgcalls.dylib"


class TestLoadLibrary:
    def test_explicit_library_path(self, fresh_loader):
        fake_lib = MagicMock()
        config = NativeConfig(library_path="/opt/ntgcalls/libntgcalls.so")

        with patch("ctypes.CDLL", return_value=fake_lib) as cdll:
            result = _load_library(config)

        assert result is fake_lib
        cdll.assert_called_once_with("/opt/ntgcalls/libntgcalls.so")

    def test_find_library_then_filename(self, fresh_loader):
        """find_library 결과 로드 실패 시 기본 파일명으로 재시도합니다."""
        fake_lib = MagicMock()

        with patch("ctypes.util.find_library", return_value="libntgcalls.so.1"), \
             patch("platform.system", return_value="Linux"), \
             patch("ctypes.CDLL", side_effect=[OSError("bad"), fake_lib]) as cdll:
            result = _load_library()

        assert result is fake_lib
        assert [c.args[0] for c in cdll.call_args_list] == ["libntgcalls.so.1", "libntgcalls.so"]

    def test_raises_when_not_loadable(self, fresh_loader):
        with patch("ctypes.util.find_library", return_value=None), \
             patch("ctypes.CDLL", side_effect=OSError("not found")), \
             pytest.raises(NativeLibraryNotFoundError, match="ntgcalls 라이브러리를 로드할 수 없습니다"):
            _load_library()

    def test_result_is_cached(self, fresh_loader):
        with patch("ctypes.CDLL", return_value=MagicMock()) as cdll:
            first = _load_library(NativeConfig(library_path="/tmp/libntgcalls.so"))
            second = _load_library()

        assert first is second
        cdll.assert_called_once()

    def test_is_library_available_false(self, fresh_loader):
        with patch("ctypes.util.find_library", return_value=None), \
             patch("ctypes.CDLL", side_effect=OSError("not found")):
            assert is_library_available() is False

    def test_is_library_available_true(self, fresh_loader):
        with patch("ctypes.CDLL", return_value=MagicMock()):
            assert is_library_available(NativeConfig(library_path="/tmp/x.so")) is True


class TestGetBindings:
    def test_singleton(self, fresh_loader):
        with patch("ctypes.CDLL", return_value=MagicMock()) as cdll:
            first = get_bindings(NativeConfig(library_path="/tmp/libntgcalls.so"))
            second = get_bindings(NativeConfig(library_path="/other/libntgcalls.so"))

        assert first is second
        cdll.assert_called_once_with("/tmp/libntgcalls.so")

    def test_missing_library_propagates(self, fresh_loader):
        with patch("ctypes.util.find_library", return_value=None), \
             patch("ctypes.CDLL", side_effect=OSError("not found")), \
             pytest.raises(NativeLibraryNotFoundError):
            get_bindings()
        assert bindings_module._bindings is None


# =============================================================================
# NativeBindings
# =============================================================================

class TestNativeBindingsSignatures:
    def test_all_entry_points_declared(self):
        lib = MagicMock()
        NativeBindings(lib)

        for name, (restype, argtypes) in ENTRY_POINTS.items():
            fn = getattr(lib, name)
            assert fn.restype is restype
            assert fn.argtypes == argtypes

    # C ABI를 ENTRY_POINTS와 독립적으로 적어 두고 대조
    _U32, _I64, _I32 = ctypes.c_uint32, ctypes.c_int64, ctypes.c_int32
    _CHAR_P = ctypes.POINTER(ctypes.c_char)

    @pytest.mark.parametrize("name, restype, argtypes", [
        ("ntg_init",          _U32, []),
        ("ntg_destroy",       _I32, [_U32]),
        ("ntg_get_params",    _I32, [_U32, _I64, MediaDescriptionC, _CHAR_P, _I32]),
        ("ntg_connect",       _I32, [_U32, _I64, _CHAR_P]),
        ("ntg_change_stream", _I32, [_U32, _I64, MediaDescriptionC]),
        ("ntg_pause",         _I32, [_U32, _I64]),
        ("ntg_resume",        _I32, [_U32, _I64]),
        ("ntg_mute",          _I32, [_U32, _I64]),
        ("ntg_unmute",        _I32, [_U32, _I64]),
        ("ntg_stop",          _I32, [_U32, _I64]),
    ])
    def test_declared_c_abi(self, name: str, restype, argtypes: list):
        lib = MagicMock()
        NativeBindings(lib)

        fn = getattr(lib, name)
        assert fn.restype is restype
        assert fn.argtypes == argtypes

    def test_entry_point_table_is_complete(self):
        assert set(ENTRY_POINTS) == {
            "ntg_init", "ntg_destroy", "ntg_get_params", "ntg_connect", "ntg_change_stream",
            "ntg_pause", "ntg_resume", "ntg_mute", "ntg_unmute", "ntg_stop",
        }

    def test_declared_argtypes_accept_real_arguments(self):
        """선언된 argtypes로 실제 ctypes 인자 변환이 가능한지 확인합니다."""
        lib = MagicMock()
        NativeBindings(lib)

        # u32 uid 최대값과 i64 채널 chat id가 잘리지 않아야 함
        for name in ("ntg_pause", "ntg_stop"):
            uid_type, chat_type = getattr(lib, name).argtypes
            assert uid_type(2**32 - 1).value == 2**32 - 1
            assert chat_type(-1001234567890).value == -1001234567890

        buffer = ctypes.create_string_buffer(8)
        char_p = lib.ntg_connect.argtypes[2]
        assert ctypes.cast(buffer, char_p)[0] == b"\0"

    def test_signature_details(self):
        lib = MagicMock()
        NativeBindings(lib)

        assert lib.ntg_init.restype is ctypes.c_uint32
        assert lib.ntg_init.argtypes == []
        assert lib.ntg_get_params.argtypes[:3] == [ctypes.c_uint32, ctypes.c_int64, MediaDescriptionC]
        assert lib.ntg_get_params.argtypes[4] is ctypes.c_int32
        assert lib.ntg_change_stream.argtypes[1] is ctypes.c_int64
        assert lib.ntg_pause.restype is ctypes.c_int32

    def test_missing_symbol_raises(self):
        lib = MagicMock()
        del lib.ntg_unmute

        with pytest.raises(NativeSymbolNotFoundError, match="ntg_unmute"):
            NativeBindings(lib)


class TestNativeBindingsCalls:
    """원시 반환값 전달 테스트"""

    def test_init_returns_uid(self):
        lib = MagicMock()
        lib.ntg_init.return_value = 3
        assert NativeBindings(lib).init() == 3

    @pytest.mark.parametrize("method", ["pause", "resume", "mute", "unmute", "stop"])
    def test_chat_calls_pass_through(self, method: str):
        lib = MagicMock()
        getattr(lib, f"ntg_{method}").return_value = 7
        bindings = NativeBindings(lib)

        assert getattr(bindings, method)(1, -100123) == 7
        getattr(lib, f"ntg_{method}").assert_called_once_with(1, -100123)

    def test_destroy_pass_through(self):
        lib = MagicMock()
        lib.ntg_destroy.return_value = -2
        assert NativeBindings(lib).destroy(9) == -2
        lib.ntg_destroy.assert_called_once_with(9)

    def test_get_params_passes_struct_by_value(self):
        lib = MagicMock()
        captured = {}

        def fake_get_params(uid, chat_id, description, buffer, size):
            block = AudioDescriptionBlock.from_address(description.audio)
            captured["source"] = ctypes.string_at(block.input_handle)
            captured["video"] = description.video
            captured["size"] = size
            return 0

        lib.ntg_get_params.side_effect = fake_get_params
        bindings = NativeBindings(lib)
        buffer = ctypes.create_string_buffer(16)

        with build_media_description(audio=AudioSource("mic.wav")) as description:
            assert bindings.get_params(1, 2, description, buffer, 16) == 0

        assert captured == {"source": b"mic.wav", "video": None, "size": 16}

    def test_connect_passes_null_terminated_buffer(self):
        lib = MagicMock()
        lib.ntg_connect.return_value = 0
        bindings = NativeBindings(lib)

        with pin_text('{"ufrag":"x"}') as pinned:
            assert bindings.connect(1, 2, pinned) == 0
            passed = lib.ntg_connect.call_args.args[2]
            assert passed.raw == b'{"ufrag":"x"}\0'

    def test_change_stream_passes_struct(self):
        lib = MagicMock()
        lib.ntg_change_stream.return_value = 0
        bindings = NativeBindings(lib)

        with build_media_description() as description:
            bindings.change_stream(1, 2, description)

        passed = lib.ntg_change_stream.call_args.args[2]
        assert isinstance(passed, MediaDescriptionC)
        assert not passed.audio and not passed.video
