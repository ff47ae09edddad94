"""
설정 관리 모듈

ConfigStore, ConfigWatch를 통해 설정 파일 하나를 읽고 쓰고 감시합니다.
"""

from .config_manager import CacheState, ConfigStore, ConfigWatch, Validator
from .settings import ConfigurationError, StoreSettings

__all__ = [
    "CacheState",
    "ConfigStore",
    "ConfigWatch",
    "ConfigurationError",
    "StoreSettings",
    "Validator",
]
