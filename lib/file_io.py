"""
파일 시스템 접근 계층

ConfigStore가 사용하는 읽기/쓰기/감시 기능을 한 곳에 모읍니다.
테스트에서는 같은 인터페이스를 가진 가짜 객체로 교체할 수 있습니다.

감시는 watchdog의 PollingObserver를 사용합니다. 네트워크 드라이브나
컨테이너 볼륨처럼 inotify 이벤트가 오지 않는 환경에서도 동작합니다.
"""

import logging
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers.polling import PollingObserver

logger = logging.getLogger(__name__)


class FileWatchHandle:
    """파일 감시 핸들 (stop()으로 해제)"""

    def __init__(self, observer: PollingObserver, path: Path):
        self._observer = observer
        self.path = path

    @property
    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def stop(self) -> None:
        """감시 중지 (여러 번 호출해도 안전)"""
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None
            logger.info(f"[FileSystem] 파일 감시 중지: {self.path}")


class _SingleFileHandler(FileSystemEventHandler):
    """디렉토리 이벤트 중 대상 파일에 대한 것만 전달"""

    def __init__(self, target: Path, on_change: Callable[[], None]):
        self.target = target
        self.on_change = on_change

    def _matches(self, raw_path: str | bytes) -> bool:
        if not raw_path:
            return False
        return Path(os.fsdecode(raw_path)).resolve() == self.target

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self.on_change()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self.on_change()

    def on_moved(self, event: FileSystemEvent) -> None:
        # 에디터가 임시 파일을 대상 경로로 rename하는 경우
        if not event.is_directory and self._matches(getattr(event, "dest_path", "")):
            self.on_change()


class LocalFileSystem:
    """로컬 파일 시스템 구현

    모든 에러는 OSError 계열 그대로 전파합니다. 호출자(ConfigStore)가
    도메인 에러로 변환합니다.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def read_file(self, path: str | Path) -> str:
        """파일 전체를 텍스트로 읽기"""
        with open(path, encoding=self.encoding) as f:
            return f.read()

    async def write_file(self, path: str | Path, text: str) -> None:
        """파일 전체를 덮어쓰기 (원자적 교체 아님)"""
        with open(path, "w", encoding=self.encoding) as f:
            f.write(text)

    def watch_file(
        self,
        path: str | Path,
        interval: float,
        on_change: Callable[[], None],
    ) -> FileWatchHandle:
        """파일 변경 폴링 감시 시작

        on_change는 watchdog 옵저버 스레드에서 호출됩니다.

        Args:
            path: 감시할 파일 경로
            interval: 폴링 주기 (초)
            on_change: 변경 시 호출할 함수 (인자 없음)

        Returns:
            FileWatchHandle: 감시 해제용 핸들
        """
        target = Path(path).resolve()
        observer = PollingObserver(timeout=interval)
        observer.schedule(
            _SingleFileHandler(target, on_change), str(target.parent), recursive=False
        )
        observer.start()
        logger.info(f"[FileSystem] 파일 감시 시작: {target} ({interval}초 주기)")
        return FileWatchHandle(observer, target)
