import os
import asyncio
import logging
import logging.config
from pathlib import Path
from contextlib import asynccontextmanager
import yaml
import dotenv
from fastapi import FastAPI
from quotewatch.core.config import Settings
from quotewatch.core.poll_loop import PollLoop
from quotewatch.core.state import state
from quotewatch.providers.twelvedata import TwelveDataClient
from quotewatch.repository.ticker import TickerStore
from quotewatch.routers import metrics, ticker
from quotewatch.services.market_clock import MarketClock
from quotewatch.services.price_fetcher import PriceFetcher

# 환경 변수 로드
dotenv.load_dotenv()

# YAML 파일 경로
LOGGING_CONFIG_PATH = Path(__file__).resolve().parent / "app_logging_config.yaml"

# YAML 파일에서 로깅 설정 로드
def setup_logging():
    """
    YAML 파일에서 로깅 설정을 로드합니다.
    LOG_LEVEL 환경 변수가 있으면 root 로거 레벨을 덮어씁니다.

    Args:
        None

    Returns:
        None
    """
    try:
        with open(LOGGING_CONFIG_PATH, "r", encoding="utf-8") as file:
            config = yaml.safe_load(file)
            logging.config.dictConfig(config)
    except FileNotFoundError as fnf_error:
        print(f"Logging config file not found: {fnf_error}")
        logging.basicConfig(level=logging.INFO)
    except yaml.YAMLError as yaml_error:
        print(f"Error parsing YAML logging config: {yaml_error}")
        logging.basicConfig(level=logging.INFO)

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        logging.getLogger().setLevel(log_level.upper())

# 로깅 설정 초기화
setup_logging()

# 로거 생성
logger = logging.getLogger(__name__)


def build_poll_loop(settings: Settings) -> PollLoop:
    """
    설정값으로 폴링 루프와 그 협력 객체들을 생성합니다.
    티커 파일이 없으면 빈 목록으로 생성하며, 생성에 실패하면 예외가 그대로 전파됩니다.
    """
    ticker_store = TickerStore(settings.tickers_path)
    tickers = ticker_store.init()
    client = TwelveDataClient(settings.api_key, timeout=settings.http_timeout)
    state.ticker_store = ticker_store
    return PollLoop(
        clock=MarketClock(client, settings.market),
        ticker_store=ticker_store,
        fetcher=PriceFetcher(client),
        metrics=state.metrics,
        tier_a=settings.tier_a,
        tier_b=settings.tier_b,
        tickers=tickers,
        idle_interval=settings.idle_interval,
    )


def _log_poll_loop_exit(task: asyncio.Task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.critical(f"Poll loop crashed: {exc!r}", exc_info=exc)

# Lifespan 이벤트 핸들러 정의
@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    애플리케이션 시작 시 폴링 루프를 백그라운드 task로 실행하고, 종료 시 정지시킵니다.

    Args:
        _app (FastAPI): FastAPI 애플리케이션 인스턴스.

    Raises:
        ValueError: API_KEY가 설정되지 않은 경우.
        OSError: 티커 파일을 생성할 수 없는 경우.
    """
    settings = Settings.from_env()
    poll_loop = build_poll_loop(settings)
    state.poll_loop = poll_loop
    logger.info(f"애플리케이션 시작: market={settings.market} tickers_path={settings.tickers_path}")
    task = asyncio.create_task(poll_loop.run())
    task.add_done_callback(_log_poll_loop_exit)
    try:
        yield  # 애플리케이션 실행 중
    finally:
        # 진행 중인 대기를 깨우고 루프가 끝날 때까지 기다린다
        poll_loop.stop()
        await asyncio.gather(task, return_exceptions=True)
        state.poll_loop = None
        logger.info("애플리케이션 종료")

# FastAPI 애플리케이션 생성
app = FastAPI(lifespan=lifespan)

# API 라우터 등록
app.include_router(metrics.router)
app.include_router(ticker.router, prefix="/api")

if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(app, host=settings.metrics_host, port=settings.metrics_port, log_config=None)
