"""
ntgcalls-bridge 명령행 진입점

역할:
- 설정 로드(YAML + NTG_ 환경변수) 및 구조화 로깅 초기화
- ntgcalls 라이브러리 로드 가능 여부 확인 (--check)
- 세션 생성 → 채팅 연결 파라미터 요청 → 출력 → 세션 해제

실행 예시:
    라이브러리 확인:
        python main.py --check --library ./libntgcalls.so

    연결 파라미터 요청 (오디오 파일 입력):
        python main.py --chat-id -1001234567890 --audio mic.wav

    FFmpeg 입력 + 설정 파일:
        python main.py --config config.yaml --chat-id 1 --video "-i cam.mp4" --source-type ffmpeg
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from ntgbridge.config.config_manager import ConfigLoadError, ConfigManager
from ntgbridge.config.schema import AppConfig
from ntgbridge.logging.structured_logger import setup_logging
from ntgbridge.native import AudioSource, MediaSources, SourceType, VideoSource
from ntgbridge.native.bindings import NativeLoadError, is_library_available
from ntgbridge.native.error_translator import NTGCallsError
from ntgbridge.native.session import NativeSession

logger = logging.getLogger(__name__)

_SOURCE_TYPES = {member.name.lower(): member for member in SourceType}


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """커맨드라인 인자를 파싱합니다."""
    parser = argparse.ArgumentParser(
        description="ntgcalls-bridge: ntgcalls 네이티브 엔진 호출 도구"
    )
    parser.add_argument(
        "--config", help="설정 파일 경로 (없으면 기본값 + NTG_ 환경변수)"
    )
    parser.add_argument(
        "--library", help="ntgcalls 공유 라이브러리 경로 (native.library_path 오버라이드)"
    )
    parser.add_argument(
        "--check", action="store_true", help="라이브러리 로드 가능 여부만 확인"
    )
    parser.add_argument(
        "--chat-id", type=int, default=0, help="채팅 ID (기본: 0)"
    )
    parser.add_argument("--audio", help="오디오 입력 (파일 경로/셸 명령/FFmpeg 인자)")
    parser.add_argument("--video", help="비디오 입력 (파일 경로/셸 명령/FFmpeg 인자)")
    parser.add_argument(
        "--source-type", choices=sorted(_SOURCE_TYPES), default="file",
        help="입력 해석 방식 (기본: file)"
    )
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> AppConfig:
    """설정 파일과 커맨드라인 오버라이드를 적용한 AppConfig를 반환합니다."""
    manager = ConfigManager()
    config = manager.load(args.config) if args.config else manager.load_dict({})

    if args.library:
        config_dict = config.model_dump()
        config_dict["native"]["library_path"] = args.library
        config = AppConfig(**config_dict)
    return config


def _build_sources(args: argparse.Namespace) -> MediaSources:
    source_type = _SOURCE_TYPES[args.source_type]
    return MediaSources(
        audio=AudioSource(args.audio, type=source_type) if args.audio else None,
        video=VideoSource(args.video, type=source_type) if args.video else None,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """메인 함수입니다. 프로세스 종료 코드를 반환합니다."""
    args = _parse_args(argv)

    try:
        config = _load_config(args)
    except ConfigLoadError as exc:
        print(f"설정 로드 실패: {exc}", file=sys.stderr)
        return 1

    setup_logging(config)

    if args.check:
        available = is_library_available(config.native)
        logger.info(f"ntgcalls 라이브러리 사용 가능: {available}")
        print("available" if available else "unavailable")
        return 0 if available else 1

    try:
        with NativeSession(config=config) as session:
            params = session.get_params(args.chat_id, _build_sources(args))
            print(params)
    except NativeLoadError as exc:
        logger.error(f"ntgcalls 초기화 실패: {exc}")
        return 1
    except NTGCallsError as exc:
        logger.error(f"ntgcalls 호출 실패: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
