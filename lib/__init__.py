"""
config_store 공통 라이브러리

에러 분류, 재시도, 파일 시스템 접근, 주석 보존 YAML 포맷, 트리 조작,
설정 검증 유틸리티 제공.
"""

from .config_validator import ModelValidator, ValidationReport
from .errors import (
    NON_RETRYABLE_PATTERNS,
    RETRYABLE_PATTERNS,
    ConfigIOError,
    ConfigParseError,
    ConfigPathError,
    ConfigSerializeError,
    ConfigStoreError,
    ErrorCategory,
    ErrorClassifier,
    RetryExhaustedError,
)
from .file_io import FileWatchHandle, LocalFileSystem
from .retry import exponential_backoff, retry
from .tree_utils import (
    deep_merge,
    normalize_field_path,
    set_path,
    split_field_path,
    to_plain,
)
from .yaml_format import HOUSE_WRITE_OPTIONS, WriteOptions, parse, stringify

__all__ = [
    # Errors
    "ConfigIOError",
    "ConfigParseError",
    "ConfigPathError",
    "ConfigSerializeError",
    "ConfigStoreError",
    "ErrorCategory",
    "ErrorClassifier",
    "NON_RETRYABLE_PATTERNS",
    "RETRYABLE_PATTERNS",
    "RetryExhaustedError",
    # Retry
    "exponential_backoff",
    "retry",
    # File system
    "FileWatchHandle",
    "LocalFileSystem",
    # Format
    "HOUSE_WRITE_OPTIONS",
    "WriteOptions",
    "parse",
    "stringify",
    # Tree
    "deep_merge",
    "normalize_field_path",
    "set_path",
    "split_field_path",
    "to_plain",
    # Validation
    "ModelValidator",
    "ValidationReport",
]
