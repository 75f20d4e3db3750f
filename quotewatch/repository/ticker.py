import os
import stat
import logging
import tempfile
from pathlib import Path
from pydantic import ValidationError
from quotewatch.schemas.ticker import Tickers

logger = logging.getLogger(__name__)

# (st_ino, st_mtime_ns, st_size). 파일이 없으면 None
# rename으로 교체되면 inode가 바뀌므로 같은 크기, 같은 mtime의 재작성도 감지된다
Fingerprint = tuple[int, int, int] | None


class TickerStore:
    """
    티커 목록 파일({"tickers": [...]})을 관리하는 저장소.

    파일의 변경 여부는 마지막으로 확인한 fingerprint와 비교하여 판단합니다.
    fingerprint는 인스턴스 필드로만 보관하며 check_for_update()만 갱신합니다.
    """
    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._last_fingerprint: Fingerprint = None

    def fingerprint(self) -> Fingerprint:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def init(self) -> Tickers:
        """
        티커 파일이 없으면 빈 목록으로 생성한 뒤 로드합니다.

        Returns:
            Tickers: 로드된 티커 목록

        Raises:
            OSError: 빈 티커 파일 생성에 실패한 경우.
        """
        if not self.path.exists():
            logger.info(f"Ticker file not found, creating empty record: path={self.path}")
            self.persist(Tickers())
        self._last_fingerprint = self.fingerprint()
        tickers = self.load()
        logger.info(f"Loaded {len(tickers)} tickers from {self.path}: {tickers.tickers}")
        return tickers

    def load(self) -> Tickers:
        """
        티커 파일을 읽습니다. 읽을 수 없거나 형식이 잘못된 경우 빈 목록을 반환합니다.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read ticker file, using empty list: path={self.path} error={e}")
            return Tickers()

        try:
            return Tickers.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Malformed ticker file, using empty list: path={self.path} "
                f"errors={e.error_count()}"
            )
            return Tickers()

    def check_for_update(self) -> Tickers | None:
        """
        마지막 확인 이후 티커 파일이 변경되었으면 새로 로드한 목록을 반환합니다.

        Returns:
            Tickers | None: 변경된 경우 새 목록, 변경이 없으면 None
        """
        current = self.fingerprint()
        if current == self._last_fingerprint:
            return None

        self._last_fingerprint = current
        if current is None:
            logger.warning(f"Ticker file disappeared, clearing tickers: path={self.path}")
            return Tickers()

        tickers = self.load()
        logger.info(f"Ticker file modified, updating tickers: fingerprint={current} tickers={tickers.tickers}")
        return tickers

    def _file_mode(self) -> int:
        # 기존 파일이 있으면 그 권한을 유지하고, 새 파일이면 umask를 적용한 0o666
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def persist(self, tickers: Tickers) -> None:
        """
        티커 목록을 파일에 저장합니다.
        같은 디렉터리의 임시 파일에 쓴 뒤 rename하므로 읽는 쪽은 부분적으로 쓰인 파일을 보지 않습니다.

        Raises:
            OSError: 파일 쓰기 또는 교체에 실패한 경우.
        """
        directory = self.path.parent
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(tickers.model_dump_json())
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"Failed to write ticker file: path={self.path} error={e}")
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
