"""
Pytest 설정 및 공통 Fixture
"""

from pathlib import Path
from typing import Callable

import pytest

from config.settings import StoreSettings


class FakeWatchHandle:
    """FakeFileSystem.watch_file() 핸들"""

    def __init__(self, path: Path, interval: float, on_change: Callable[[], None]):
        self.path = path
        self.interval = interval
        self.on_change = on_change
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeFileSystem:
    """메모리 기반 파일 시스템 (I/O 횟수 기록)

    read_errors에 넣은 예외는 순서대로 한 번씩 발생합니다.
    """

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, str] = dict(files or {})
        self.reads: list[str] = []
        self.writes: list[tuple[str, str]] = []
        self.read_errors: list[Exception] = []
        self.write_error: Exception | None = None
        self.watchers: list[FakeWatchHandle] = []

    async def read_file(self, path) -> str:
        self.reads.append(str(path))
        if self.read_errors:
            raise self.read_errors.pop(0)
        try:
            return self.files[str(path)]
        except KeyError:
            raise FileNotFoundError(2, "No such file or directory", str(path)) from None

    async def write_file(self, path, text: str) -> None:
        if self.write_error:
            raise self.write_error
        self.writes.append((str(path), text))
        self.files[str(path)] = text

    def watch_file(self, path, interval: float, on_change) -> FakeWatchHandle:
        handle = FakeWatchHandle(Path(path), interval, on_change)
        self.watchers.append(handle)
        return handle

    def trigger_change(self) -> None:
        """감시 중인 모든 핸들에 변경 알림"""
        for handle in self.watchers:
            if not handle.stopped:
                handle.on_change()


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """빈 가짜 파일 시스템"""
    return FakeFileSystem()


@pytest.fixture
def settings() -> StoreSettings:
    """테스트용 StoreSettings

    재시도 대기 없이 빠르게 실패하도록 설정.
    """
    return StoreSettings(read_retries=3, retry_delay=0, watch_interval=0.05)


@pytest.fixture
def sample_config_text() -> str:
    """주석이 포함된 샘플 설정"""
    return (
        "# 서버 설정\n"
        "server:\n"
        "    host: localhost  # 바인딩 주소\n"
        "    port: 8080\n"
        "features:\n"
        "    - search\n"
        "    - export\n"
        "debug: false\n"
    )
