"""
구조화 로깅 모듈입니다.

root 로거에 콘솔 핸들러와 순환 파일 핸들러(app.log, 10MB × 5)를 붙이고,
system.log_format에 따라 JSON(python-json-logger) 또는 텍스트 포맷을 적용합니다.

JSON 레코드 공통 필드:
    run_id   프로세스 실행 식별자 (네이티브 세션 uid와 별개)
    module   로거 이름
    level    로그 레벨

네이티브 호출 실패 로그는 extra로 operation, code 필드를 함께 남깁니다.
NativeSession은 StructuredLogger.for_session()으로 모든 레코드에 uid 필드를 붙이므로
JSON 로그를 세션 단위로 필터링할 수 있습니다.

사용 예시:
    >>> setup_logging(config)
    >>> logger = StructuredLogger.get(__name__)
    >>> logger.info("get_params 요청", extra={"chat_id": -100123})
"""

from __future__ import annotations

import logging
import logging.handlers
import uuid
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

from ntgbridge.config.schema import AppConfig

LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

_RUN_ID: str = ""


def setup_logging(config: AppConfig, run_id: Optional[str] = None) -> None:
    """
    root 로거를 설정에 맞게 다시 구성합니다. 여러 번 호출해도 핸들러가 중복되지 않습니다.

    파라미터:
        config: AppConfig 인스턴스 (system 섹션 사용)
        run_id: 실행 식별자. None이면 system.run_id, 그것도 비어있으면 UUID
    """
    global _RUN_ID
    _RUN_ID = run_id or config.system.run_id or str(uuid.uuid4())

    level = getattr(logging, config.system.log_level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _remove_handlers(root_logger)

    formatter = _make_formatter(config.system.log_format, _RUN_ID)
    for handler in _build_handlers(Path(config.system.log_dir)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(__name__).info(
        f"로깅 초기화: level={config.system.log_level}, "
        f"format={config.system.log_format}, run={_RUN_ID}"
    )


def _remove_handlers(root_logger: logging.Logger) -> None:
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()


def _build_handlers(log_dir: Path) -> list[logging.Handler]:
    """콘솔 핸들러와 순환 파일 핸들러를 만듭니다. 파일 핸들러 실패 시 콘솔만 사용."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=log_dir / LOG_FILENAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))
    except OSError as exc:
        logging.warning(f"로그 파일 핸들러 생성 실패 ({log_dir}): {exc}")
    return handlers


def _make_formatter(log_format: str, run_id: str) -> logging.Formatter:
    if log_format == "json":
        return _JsonFormatter(run_id=run_id)
    return _TextFormatter(run_id=run_id)


class _JsonFormatter(jsonlogger.JsonFormatter):
    """run_id, module, level 필드를 모든 레코드에 추가하는 JSON 포맷터"""

    def __init__(self, run_id: str = "") -> None:
        super().__init__(
            fmt="%(asctime)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            # 한글 메시지를 \uXXXX 이스케이프 없이 기록
            json_ensure_ascii=False,
        )
        self._run_id = run_id

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["run_id"] = self._run_id
        log_record["module"] = record.name
        log_record["level"] = record.levelname


class _TextFormatter(logging.Formatter):
    # run_id 앞 8자를 접두어로 사용
    def __init__(self, run_id: str = "") -> None:
        prefix = run_id[:8] if run_id else "no-rid"
        super().__init__(
            fmt=f"%(asctime)s [{prefix}] %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


class _SessionLoggerAdapter(logging.LoggerAdapter):
    # 호출 시 넘긴 extra(chat_id 등)와 uid를 합쳐서 전달
    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


class StructuredLogger:
    """표준 logging.Logger를 그대로 돌려주는 얇은 팩토리입니다."""

    @staticmethod
    def get(name: str) -> logging.Logger:
        return logging.getLogger(name)

    @staticmethod
    def for_session(name: str, uid: int) -> logging.LoggerAdapter:
        """모든 레코드에 네이티브 세션 uid를 붙이는 로거를 반환합니다."""
        return _SessionLoggerAdapter(logging.getLogger(name), {"uid": uid})

    @staticmethod
    def get_run_id() -> str:
        """마지막 setup_logging()에서 정한 실행 ID (호출 전에는 빈 문자열)"""
        return _RUN_ID
