"""
에러 분류 시스템

설정 파일 I/O 에러의 재시도 가능 여부를 판단하여 읽기 재시도 로직에 활용.
"""

import errno
from enum import Enum


class ErrorCategory(str, Enum):
    """에러 카테고리"""

    RETRYABLE = "retryable"  # 파일 교체 중, 일시적 잠금
    NON_RETRYABLE = "non_retryable"  # 권한 없음, 문법 오류
    UNKNOWN = "unknown"


# 재시도 가능 에러 패턴
RETRYABLE_PATTERNS = [
    "temporarily unavailable",
    "resource busy",
    "device or resource busy",
    "interrupted",
    "timeout",
    "timed out",
    "EAGAIN",
    "EBUSY",
]

# 재시도 불가 에러 패턴
NON_RETRYABLE_PATTERNS = [
    "permission denied",
    "access is denied",
    "is a directory",
    "not a directory",
    "read-only file system",
    "no space left",
    "disk quota exceeded",
    "invalid",
]

# 파일 시스템 에러 번호 기반 분류 (OSError는 메시지보다 우선)
RETRYABLE_ERRNOS = {
    errno.ENOENT,  # 에디터의 원자적 교체(rename) 중 잠시 사라짐
    errno.EAGAIN,
    errno.EBUSY,
    errno.EINTR,
    errno.ETIMEDOUT,
}

NON_RETRYABLE_ERRNOS = {
    errno.EACCES,
    errno.EPERM,
    errno.EISDIR,
    errno.ENOTDIR,
    errno.EROFS,
    errno.ENOSPC,
    errno.EINVAL,
} | ({errno.EDQUOT} if hasattr(errno, "EDQUOT") else set())


class ConfigStoreError(Exception):
    """ConfigStore 기본 에러"""

    def __init__(
        self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN
    ):
        super().__init__(message)
        self.category = category


class ConfigIOError(ConfigStoreError):
    """설정 파일 읽기/쓰기 실패"""

    def __init__(
        self, message: str, category: ErrorCategory = ErrorCategory.RETRYABLE
    ):
        super().__init__(message, category)


class ConfigParseError(ConfigStoreError):
    """설정 파일 문법 오류"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.NON_RETRYABLE)


class ConfigSerializeError(ConfigStoreError):
    """직렬화할 수 없는 값 또는 잘못된 쓰기 옵션"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.NON_RETRYABLE)


class ConfigPathError(ConfigStoreError):
    """잘못된 필드 경로 (.a.b 형식)"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.NON_RETRYABLE)


class RetryExhaustedError(ConfigStoreError):
    """재시도 횟수 소진"""

    def __init__(self, message: str = "Failed retrying"):
        super().__init__(message, ErrorCategory.NON_RETRYABLE)


class ErrorClassifier:
    """에러 분류기"""

    @classmethod
    def classify(cls, error: Exception) -> ErrorCategory:
        """에러를 분류하여 카테고리 반환

        Args:
            error: 분류할 예외 객체

        Returns:
            ErrorCategory: 재시도 가능 여부에 따른 카테고리
        """
        if isinstance(error, ConfigStoreError):
            return error.category

        if isinstance(error, OSError):
            return cls._classify_os_error(error)

        category = cls._match_patterns(str(error))
        if category is not None:
            return category

        if isinstance(error, (ValueError, KeyError, TypeError)):
            return ErrorCategory.NON_RETRYABLE

        return ErrorCategory.UNKNOWN

    @classmethod
    def _classify_os_error(cls, error: OSError) -> ErrorCategory:
        """OSError 분류: 타입 → errno → 메시지 순

        str(error)에는 파일 경로가 들어가므로 패턴 매칭에는 strerror만 사용합니다.
        """
        if isinstance(error, (PermissionError, IsADirectoryError, NotADirectoryError)):
            return ErrorCategory.NON_RETRYABLE

        if isinstance(
            error, (FileNotFoundError, TimeoutError, InterruptedError, BlockingIOError)
        ):
            return ErrorCategory.RETRYABLE

        if error.errno in NON_RETRYABLE_ERRNOS:
            return ErrorCategory.NON_RETRYABLE
        if error.errno in RETRYABLE_ERRNOS:
            return ErrorCategory.RETRYABLE

        if error.strerror is not None:
            message = error.strerror
        elif error.filename is None and len(error.args) == 1:
            # OSError("메시지") 형태 (경로 없음)
            message = str(error.args[0])
        else:
            message = ""

        category = cls._match_patterns(message)
        if category is not None:
            return category

        return ErrorCategory.RETRYABLE

    @staticmethod
    def _match_patterns(message: str) -> ErrorCategory | None:
        """메시지 패턴 매칭 (우선순위: NON_RETRYABLE > RETRYABLE)"""
        message = message.lower()

        for pattern in NON_RETRYABLE_PATTERNS:
            if pattern.lower() in message:
                return ErrorCategory.NON_RETRYABLE

        for pattern in RETRYABLE_PATTERNS:
            if pattern.lower() in message:
                return ErrorCategory.RETRYABLE

        return None

    @classmethod
    def is_retryable(cls, error: Exception) -> bool:
        """재시도해볼 가치가 있는 에러인지 (UNKNOWN 포함)"""
        return cls.classify(error) != ErrorCategory.NON_RETRYABLE

    @classmethod
    def format_message(
        cls, error: Exception, include_traceback: bool = False
    ) -> str:
        """에러 메시지 포맷팅

        Args:
            error: 포맷팅할 예외 객체
            include_traceback: 상세 스택 트레이스 포함 여부

        Returns:
            str: 카테고리 라벨이 포함된 에러 메시지
        """
        category = cls.classify(error)
        label = {
            ErrorCategory.RETRYABLE: "[재시도 가능]",
            ErrorCategory.NON_RETRYABLE: "[재시도 불가]",
            ErrorCategory.UNKNOWN: "[분류되지 않음]",
        }

        message = f"{label[category]} {type(error).__name__}: {str(error)}"

        if include_traceback:
            import traceback

            message += f"\n\n상세 정보:\n{traceback.format_exc()}"

        return message
