"""
단일 설정 파일 저장소 및 변경 감시

사람이 직접 편집하는 설정 파일 하나를 주석을 보존한 채로 읽고, 쓰고,
병합하고, 감시합니다.

설계 원칙:
- 파일 경로는 생성 시 고정, 파일은 직접 만들지 않음
- 읽은 결과는 메모리에 캐시 (set()은 캐시를 갱신하지 않음)
- 동시 쓰기는 마지막 쓰기가 이김 (파일 잠금 없음)

사용법:
    ```python
    store = ConfigStore("config/app.yaml")
    config = await store.get()

    await store.set_property(".server.port", 8080)

    other = ConfigStore("config/defaults.yaml")
    await store.merge(other, merge_old_on_top=True)

    watch = store.watch(on_change, on_error=on_error)
    ...
    watch.stop()
    ```
"""

import asyncio
import inspect
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol

from lib.errors import (
    ConfigIOError,
    ConfigParseError,
    ErrorClassifier,
    RetryExhaustedError,
)
from lib.file_io import FileWatchHandle, LocalFileSystem
from lib.retry import DelayPolicy, retry
from lib.tree_utils import (
    deep_merge,
    normalize_field_path,
    set_path,
    split_field_path,
    to_plain,
)
from lib.yaml_format import parse, stringify, with_house_options

from .settings import StoreSettings

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    """캐시 상태"""

    EMPTY = "empty"  # 아직 로드 안 됨
    FRESH = "fresh"  # 마지막 읽기 결과
    POSSIBLY_STALE = "possibly_stale"  # set() 이후 디스크와 다를 수 있음


class Validator(Protocol):
    """validate()에 넘길 검증기 인터페이스"""

    def set_config(self, data: Any) -> None: ...

    def validate(self) -> Any: ...


async def _invoke(func: Callable, *args: Any) -> None:
    """동기/비동기 콜백 모두 호출"""
    result = func(*args)
    if inspect.isawaitable(result):
        await result


class ConfigStore:
    """설정 파일 저장소

    파일 하나에 대한 읽기 캐시와 쓰기/병합/감시 기능을 제공합니다.
    """

    def __init__(
        self,
        path: str | Path,
        fs: Any = None,
        settings: StoreSettings | None = None,
    ):
        """
        Args:
            path: 설정 파일 경로 (생성 후 변경 불가)
            fs: 파일 시스템 구현 (기본: LocalFileSystem)
            settings: 재시도/감시 기본값 (기본: 환경변수)
        """
        self._path = Path(path)
        self._fs = fs or LocalFileSystem()
        self.settings = settings or StoreSettings.from_env()
        self._cache: Any = None
        self._cache_state = CacheState.EMPTY

    def __repr__(self) -> str:
        return f"ConfigStore(path={str(self._path)!r}, cache={self._cache_state.value})"

    @property
    def path(self) -> Path:
        """설정 파일 경로"""
        return self._path

    @property
    def cache(self) -> Any:
        """마지막으로 읽은 설정 트리 (없으면 None)"""
        return self._cache

    @property
    def cache_state(self) -> CacheState:
        return self._cache_state

    async def get(
        self,
        freshcopy: bool = False,
        retries: int | None = None,
        delay: DelayPolicy | None = None,
    ) -> Any:
        """설정 조회

        캐시가 있고 freshcopy=False면 I/O 없이 캐시를 반환합니다.

        Args:
            freshcopy: True면 캐시를 무시하고 파일에서 다시 읽기
            retries: 읽기 재시도 횟수 (기본: settings.read_retries)
            delay: 재시도 대기(초) 또는 지연 함수 (기본: settings.retry_delay)

        Returns:
            주석이 보존된 설정 트리

        Raises:
            ConfigIOError: 파일 읽기 실패 (재시도 소진 포함)
            ConfigParseError: 설정 문법 오류
        """
        if self._cache is not None and not freshcopy:
            return self._cache

        retries = self.settings.read_retries if retries is None else retries
        delay = self.settings.retry_delay if delay is None else delay

        try:
            text = await retry(
                lambda: self._fs.read_file(self._path),
                retries=retries,
                delay=delay,
                error_message=f"설정 파일 읽기 실패: {self._path}",
                is_retryable=ErrorClassifier.is_retryable,
            )
        except RetryExhaustedError as e:
            logger.error(f"[ConfigStore] {e} ({retries + 1}회 시도) - {e.__cause__}")
            raise ConfigIOError(f"{e}: {e.__cause__}") from e
        except OSError as e:
            logger.error(f"[ConfigStore] 설정 파일 읽기 실패: {self._path} - {e}")
            raise ConfigIOError(
                f"설정 파일 읽기 실패: {self._path}: {e}",
                category=ErrorClassifier.classify(e),
            ) from e
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"설정 파일 인코딩 오류: {self._path}: {e}") from e

        config = parse(text)

        self._cache = config
        self._cache_state = CacheState.FRESH
        logger.debug(f"[ConfigStore] 설정 로드 완료: {self._path}")
        return config

    async def set(self, config: Any, options: dict[str, Any] | None = None) -> None:
        """설정 트리를 파일에 덮어쓰기

        get()으로 얻은 트리를 수정해서 넘기면 주석이 유지됩니다.
        사내 포맷 옵션(HOUSE_WRITE_OPTIONS)이 호출자 옵션보다 우선합니다.
        캐시는 갱신하지 않습니다.

        Args:
            config: 저장할 설정 트리
            options: 추가 쓰기 옵션 (원본은 변경되지 않음)

        Raises:
            ConfigSerializeError: 직렬화 불가 값 또는 잘못된 옵션
            ConfigIOError: 파일 쓰기 실패
        """
        text = stringify(config, with_house_options(options))

        try:
            await self._fs.write_file(self._path, text)
        except OSError as e:
            logger.error(f"[ConfigStore] 설정 파일 쓰기 실패: {self._path} - {e}")
            raise ConfigIOError(
                f"설정 파일 쓰기 실패: {self._path}: {e}",
                category=ErrorClassifier.classify(e),
            ) from e

        if self._cache is not None:
            self._cache_state = CacheState.POSSIBLY_STALE
        logger.info(f"[ConfigStore] 설정 저장 완료: {self._path}")

    async def set_property(self, field_path: str | None, value: Any) -> bool:
        """jq 스타일 경로로 값 하나 설정 후 저장 (예: .server.port)

        Args:
            field_path: 점 구분 경로 (선행 점 하나 허용)
            value: 설정할 값

        Returns:
            bool: 경로가 비어 있으면 False (I/O 없음), 저장했으면 True

        Raises:
            ConfigPathError: 잘못된 경로
            ConfigIOError, ConfigParseError, ConfigSerializeError: get/set 실패
        """
        if not field_path:
            return False

        field_path = normalize_field_path(field_path)
        split_field_path(field_path)

        config = await self.get()
        set_path(config, field_path, value)
        await self.set(config)

        logger.info(f"[ConfigStore] 속성 설정: {self._path} .{field_path}")
        return True

    async def merge(self, other: Any, merge_old_on_top: bool = False) -> bool:
        """다른 설정을 이 파일에 깊은 병합하여 저장

        두 파일을 동시에 새로 읽은 뒤 병합합니다. other의 파일은 변경하지 않습니다.

        Args:
            other: 비동기 get()을 제공하는 설정 저장소
            merge_old_on_top: True면 충돌 시 기존(self) 값 우선

        Returns:
            bool: other가 저장소가 아니면 False (I/O 없음), 저장했으면 True

        Raises:
            ConfigIOError, ConfigParseError: 어느 한쪽 읽기 실패 (쓰기 없음)
            ConfigSerializeError, ConfigIOError: 쓰기 실패
        """
        if not inspect.iscoroutinefunction(getattr(other, "get", None)):
            logger.warning(
                f"[ConfigStore] 병합 대상이 설정 저장소가 아님: {type(other).__name__}"
            )
            return False

        old_config, new_config = await asyncio.gather(
            self.get(freshcopy=True),
            other.get(freshcopy=True),
        )

        # 기준 트리는 항상 기존 파일 (주석과 키 순서 유지)
        merged = deep_merge(old_config, new_config, overwrite=not merge_old_on_top)
        await self.set(merged)

        logger.info(
            f"[ConfigStore] 설정 병합 완료: {other!r} → {self._path} "
            f"({'기존 값' if merge_old_on_top else '새 값'} 우선)"
        )
        return True

    def validate(self, validator: Validator) -> list:
        """캐시된 설정을 검증기로 검증 (디스크 읽기 없음)

        Args:
            validator: set_config(), validate().get_errors()를 제공하는 검증기

        Returns:
            검증기가 보고한 에러 목록 그대로
        """
        validator.set_config(self._cache)
        return validator.validate().get_errors()

    def watch(
        self,
        callback: Callable[[Any], Any],
        on_error: Callable[[Exception], Any] | None = None,
        interval: float | None = None,
    ) -> "ConfigWatch":
        """파일 변경 감시 시작

        실행 중인 이벤트 루프 안에서 호출해야 합니다.

        Args:
            callback: 내용이 바뀌었을 때 새 설정으로 호출 (동기/비동기)
            on_error: 다시 읽기 실패 시 호출 (없으면 로그만)
            interval: 폴링 주기 (초, 기본: settings.watch_interval)

        Returns:
            ConfigWatch: stop()으로 감시 해제
        """
        watcher = ConfigWatch(
            self,
            callback,
            on_error=on_error,
            interval=(
                self.settings.watch_interval if interval is None else interval
            ),
        )
        watcher.start()
        return watcher


class ConfigWatch:
    """설정 파일 변경 감시

    파일 시스템 알림마다 설정을 새로 읽고, 파싱된 값이 직전에 본 값과
    다를 때만 콜백을 호출합니다. 읽기 실패는 on_error로 전달되며 감시는
    계속됩니다.
    """

    def __init__(
        self,
        store: ConfigStore,
        callback: Callable[[Any], Any],
        on_error: Callable[[Exception], Any] | None = None,
        interval: float = 1.0,
    ):
        self.store = store
        self.callback = callback
        self.on_error = on_error
        self.interval = interval

        self._handle: FileWatchHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._rerun = False

        # 감시 시작 시점의 캐시를 기준값으로 사용
        self._last_seen: Any = (
            to_plain(store.cache) if store.cache is not None else None
        )
        self._has_seen = store.cache is not None

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """감시 시작"""
        if self._handle:
            return

        self._loop = asyncio.get_running_loop()
        self._handle = self.store._fs.watch_file(
            self.store.path, self.interval, self._on_file_change
        )
        logger.info(f"[ConfigWatch] 감시 시작: {self.store.path}")

    def stop(self) -> None:
        """감시 중지 (진행 중인 확인 작업도 취소)"""
        if self._handle:
            self._handle.stop()
            self._handle = None
            logger.info(f"[ConfigWatch] 감시 중지: {self.store.path}")

        if self._task and not self._task.done():
            self._task.cancel()

    def _on_file_change(self) -> None:
        """파일 시스템 알림 (옵저버 스레드에서 호출될 수 있음)"""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._schedule_check)

    def _schedule_check(self) -> None:
        """루프 스레드에서 확인 작업 예약 (진행 중이면 끝난 뒤 한 번 더)"""
        if self._handle is None:
            return

        if self._task and not self._task.done():
            self._rerun = True
            return

        self._task = self._loop.create_task(self._run_checks())

    async def _run_checks(self) -> None:
        while True:
            self._rerun = False
            await self.check()
            if not self._rerun or self._handle is None:
                break

    async def check(self) -> bool:
        """설정을 다시 읽고 바뀌었으면 콜백 호출

        Returns:
            bool: 콜백 호출 여부
        """
        try:
            config = await self.store.get(freshcopy=True)

            snapshot = to_plain(config)
            if self._has_seen and snapshot == self._last_seen:
                logger.debug(f"[ConfigWatch] 내용 변화 없음: {self.store.path}")
                return False

            self._last_seen = snapshot
            self._has_seen = True

            logger.info(f"[ConfigWatch] 설정 변경 감지: {self.store.path}")
            await _invoke(self.callback, config)
            return True

        except Exception as e:
            if self.on_error is None:
                logger.error(
                    f"[ConfigWatch] 변경 처리 실패: {ErrorClassifier.format_message(e)}"
                )
                return False

            try:
                await _invoke(self.on_error, e)
            except Exception as handler_error:
                logger.error(f"[ConfigWatch] 에러 콜백 실행 실패: {handler_error}")
            return False
