"""
ntgcalls-bridge 설정 스키마입니다.

config.yaml 구조:
    system:  로깅 (레벨, 포맷, 디렉토리, 실행 ID)
    native:  ntgcalls 공유 라이브러리 위치와 호출 파라미터

누락된 섹션/필드는 기본값으로 채워지므로 빈 설정으로도 AppConfig를 만들 수 있습니다.

사용 예시:
    >>> from ntgbridge.config.schema import AppConfig
    >>> AppConfig(native={"library_path": "/opt/ntgcalls/libntgcalls.so"}).native.params_buffer_size
    4096
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "text")

# ntg_get_params의 size 인자는 i32
MAX_PARAMS_BUFFER_SIZE = 2**31 - 1


class SystemConfig(BaseModel):
    """system 섹션: 로깅 설정"""

    log_level: str = Field(default="INFO", description="로그 레벨 (대소문자 무관)")
    log_format: str = Field(default="json", description="json | text")
    log_dir: str = Field(default="output/logs", description="app.log 저장 디렉토리")
    # 비어있으면 setup_logging()에서 UUID 생성
    run_id: str = Field(default="", description="실행 ID")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"지원하지 않는 log_level입니다: '{value}' (허용: {', '.join(LOG_LEVELS)})")
        return level

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, value: str) -> str:
        if value not in LOG_FORMATS:
            raise ValueError(f"지원하지 않는 log_format입니다: '{value}' (허용: {', '.join(LOG_FORMATS)})")
        return value


class NativeConfig(BaseModel):
    """
    native 섹션: ntgcalls 공유 라이브러리 설정

    library_path가 비어있으면 library_name으로 find_library → lib{name}.{so|dylib|dll} 순서로 찾습니다.
    """

    library_path: str = Field(default="", description="공유 라이브러리 전체 경로")
    library_name: str = Field(default="ntgcalls", description="라이브러리 기본 이름")
    params_buffer_size: int = Field(default=4096, description="get_params 출력 버퍼 크기 (bytes)")

    @field_validator("library_name")
    @classmethod
    def check_library_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("library_name은 비어있을 수 없습니다.")
        return name

    @field_validator("params_buffer_size")
    @classmethod
    def check_params_buffer_size(cls, value: int) -> int:
        if not 1 <= value <= MAX_PARAMS_BUFFER_SIZE:
            raise ValueError(
                f"params_buffer_size는 1~{MAX_PARAMS_BUFFER_SIZE} 범위여야 합니다. 입력값: {value}"
            )
        return value


class AppConfig(BaseModel):
    """config.yaml 전체에 대응하는 루트 모델"""

    system: SystemConfig = Field(default_factory=SystemConfig)
    native: NativeConfig = Field(default_factory=NativeConfig)
