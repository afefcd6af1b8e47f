"""
ntgcalls-bridge 설정 로더입니다.

설정값 우선순위 (높은 순):
    1. NTG_{SECTION}_{FIELD} 환경변수  (예: NTG_NATIVE_LIBRARY_PATH)
    2. YAML 설정 파일
    3. schema.py 기본값

환경변수 값은 문자열 그대로 스키마에 넘기고, 타입 변환은 Pydantic 검증 단계에서
처리합니다. 스키마에 없는 NTG_ 변수는 읽지 않습니다.

사용 예시:
    >>> manager = ConfigManager()
    >>> config = manager.load("config.yaml")
    >>> manager.get("native.params_buffer_size")
    4096
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ntgbridge.config.schema import AppConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "NTG_"


class ConfigLoadError(Exception):
    """설정을 읽거나 해석하지 못했을 때 발생합니다."""


class ConfigValidationError(ConfigLoadError):
    """설정값이 스키마 검증을 통과하지 못했을 때 발생합니다."""


class ConfigFileNotFoundError(ConfigLoadError):
    """지정한 설정 파일이 없을 때 발생합니다."""


def env_var_name(section: str, field: str) -> str:
    """section.field에 대응하는 환경변수 이름 (예: native.library_path → NTG_NATIVE_LIBRARY_PATH)"""
    return f"{ENV_PREFIX}{section}_{field}".upper()


class ConfigManager:
    """
    AppConfig를 로드해 보관하는 매니저입니다.

    로드에 실패하면 이전에 로드한 설정을 그대로 유지합니다.
    """

    def __init__(self) -> None:
        self._config: Optional[AppConfig] = None
        self._lock = threading.RLock()

    @property
    def config(self) -> Optional[AppConfig]:
        """마지막으로 검증에 성공한 설정 (로드 전에는 None)"""
        with self._lock:
            return self._config

    def load(self, filepath: str | Path) -> AppConfig:
        """
        YAML 파일을 읽고 환경변수 오버라이드를 적용해 검증합니다.

        에러:
            ConfigFileNotFoundError: 파일이 없을 때
            ConfigLoadError: 읽기/YAML 파싱 실패, 최상위가 매핑이 아닐 때
            ConfigValidationError: 스키마 검증 실패 시
        """
        filepath = Path(filepath)
        if not filepath.is_file():
            message = f"설정 파일을 찾을 수 없습니다: {filepath}"
            logger.error(message)
            raise ConfigFileNotFoundError(message)

        config = self.load_dict(self._read_yaml(filepath))
        logger.info(
            f"설정 로드 완료: {filepath} "
            f"(library_path={config.native.library_path or '(auto)'}, "
            f"params_buffer_size={config.native.params_buffer_size})"
        )
        return config

    def load_dict(self, raw_config: dict) -> AppConfig:
        """
        딕셔너리에 환경변수 오버라이드를 적용해 검증하고 활성 설정으로 교체합니다.

        설정 파일 없이 기본값 + 환경변수로 실행할 때는 빈 딕셔너리를 넘깁니다.
        """
        merged = self._merge_env_overrides(raw_config)
        config = self._validate(merged)
        with self._lock:
            self._config = config
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """
        "section.field" 형식 키로 설정값을 조회합니다. 없는 키면 default.

        에러:
            RuntimeError: 로드 전에 호출 시
        """
        with self._lock:
            if self._config is None:
                raise RuntimeError("설정이 아직 로드되지 않았습니다. load()를 먼저 호출하세요.")
            value: Any = self._config

        for part in key.split("."):
            if not hasattr(value, part):
                return default
            value = getattr(value, part)
        return value

    def validate_schema(self, raw_config: dict) -> bool:
        """raw_config가 AppConfig로 검증되는지 여부만 반환합니다. 활성 설정은 바꾸지 않습니다."""
        try:
            AppConfig(**raw_config)
        except ValidationError as exc:
            logger.warning(f"스키마 검증 실패: {exc.error_count()}개 에러")
            return False
        return True

    # =========================================================================
    # 내부 메서드
    # =========================================================================

    @staticmethod
    def _read_yaml(filepath: Path) -> dict:
        try:
            data = yaml.safe_load(filepath.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            message = f"YAML 파싱 에러 ({filepath}): {exc}"
            logger.error(message)
            raise ConfigLoadError(message) from exc
        except OSError as exc:
            message = f"설정 파일을 읽을 수 없습니다 ({filepath}): {exc}"
            logger.error(message)
            raise ConfigLoadError(message) from exc

        if data is None:
            logger.warning(f"설정 파일이 비어있어 기본값을 사용합니다: {filepath}")
            return {}
        if not isinstance(data, dict):
            message = f"설정 파일의 최상위 구조가 딕셔너리가 아닙니다: {type(data).__name__}"
            logger.error(message)
            raise ConfigLoadError(message)
        return data

    @staticmethod
    def _merge_env_overrides(raw_config: dict) -> dict:
        """스키마의 모든 section.field에 대해 NTG_ 환경변수가 있으면 덮어씁니다."""
        merged = {
            section: dict(values) if isinstance(values, dict) else values
            for section, values in raw_config.items()
        }

        for section_name, section_field in AppConfig.model_fields.items():
            for field_name in section_field.annotation.model_fields:
                env_name = env_var_name(section_name, field_name)
                if env_name not in os.environ:
                    continue

                section = merged.get(section_name)
                if not isinstance(section, dict):
                    section = merged[section_name] = {}
                section[field_name] = os.environ[env_name]
                logger.info(f"환경변수 오버라이드: {env_name} -> {section_name}.{field_name}")

        return merged

    @staticmethod
    def _validate(raw_config: dict) -> AppConfig:
        try:
            return AppConfig(**raw_config)
        except ValidationError as exc:
            for error in exc.errors():
                location = ".".join(str(part) for part in error["loc"])
                logger.error(f"설정 검증 실패 - {location}: {error['msg']} (입력값: {error.get('input')!r})")
            raise ConfigValidationError(
                f"설정 스키마 검증 실패: {exc.error_count()}개 에러"
            ) from exc
