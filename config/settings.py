"""
ConfigStore 동작 설정

환경변수 기반 설정 관리.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """설정 오류 예외"""

    pass


@dataclass
class StoreSettings:
    """ConfigStore 기본값"""

    # 읽기 재시도
    read_retries: int = 3
    retry_delay: float = 1.0  # 초

    # 파일 감시
    watch_interval: float = 1.0  # 폴링 주기 (초)

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """환경변수에서 설정 로드"""
        return cls(
            read_retries=int(os.getenv("CONFIG_STORE_READ_RETRIES", "3")),
            retry_delay=float(os.getenv("CONFIG_STORE_RETRY_DELAY", "1.0")),
            watch_interval=float(os.getenv("CONFIG_STORE_WATCH_INTERVAL", "1.0")),
        )

    def validate(self, strict: bool = True) -> list[str]:
        """설정값 검증

        Args:
            strict: True면 오류 시 예외 발생, False면 로그만

        Returns:
            list[str]: 검증 경고/오류 메시지 목록

        Raises:
            ConfigurationError: strict=True이고 오류가 있을 때
        """
        errors = []
        warnings = []

        if self.read_retries < 0:
            errors.append(f"잘못된 read_retries 값: {self.read_retries}")
        if self.read_retries > 10:
            warnings.append(f"read_retries가 너무 큼: {self.read_retries}")

        if self.retry_delay < 0:
            errors.append(f"잘못된 retry_delay 값: {self.retry_delay}")
        if self.retry_delay > 60:
            warnings.append(f"retry_delay가 너무 김: {self.retry_delay}초")

        if self.watch_interval <= 0:
            errors.append(f"폴링 간격이 0 이하: {self.watch_interval}초")
        elif self.watch_interval < 0.1:
            warnings.append(f"폴링 간격이 너무 짧음: {self.watch_interval}초")

        for warning in warnings:
            logger.warning(f"[Settings] {warning}")

        if errors:
            for error in errors:
                logger.error(f"[Settings] {error}")
            if strict:
                raise ConfigurationError(
                    f"설정 검증 실패: {len(errors)}개 오류\n" + "\n".join(errors)
                )

        return errors + warnings

    @classmethod
    def from_env_validated(cls, strict: bool = True) -> "StoreSettings":
        """환경변수에서 설정 로드 및 검증"""
        settings = cls.from_env()
        settings.validate(strict=strict)
        return settings
