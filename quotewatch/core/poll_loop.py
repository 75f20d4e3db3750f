import asyncio
import logging
from enum import Enum
from quotewatch.core.rate_budget import RateLimit, delay_for
from quotewatch.metrics.prometheus import PriceMetrics
from quotewatch.repository.ticker import TickerStore
from quotewatch.schemas.ticker import Tickers
from quotewatch.services.market_clock import MarketClock
from quotewatch.services.price_fetcher import PriceFetcher

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    AWAITING_MARKET_OPEN = "awaiting_market_open"
    CHECKING_TICKER_UPDATES = "checking_ticker_updates"
    ITERATING_SYMBOLS = "iterating_symbols"
    STOPPED = "stopped"


class PollLoop:
    """
    시장 개장 대기 -> 티커 변경 확인 -> 심볼별 가격 조회 및 대기를 반복하는 폴링 루프.

    심볼은 저장된 순서대로 하나씩 조회하며, 호출 사이 대기 시간은 두 단계의
    호출 제한 중 더 엄격한 쪽으로 정합니다. stop()을 호출하면 진행 중인 대기도 즉시 깨어납니다.
    """
    def __init__(
        self,
        clock: MarketClock,
        ticker_store: TickerStore,
        fetcher: PriceFetcher,
        metrics: PriceMetrics,
        tier_a: RateLimit,
        tier_b: RateLimit,
        tickers: Tickers | None = None,
        idle_interval: float = 60,
    ):
        self.clock = clock
        self.ticker_store = ticker_store
        self.fetcher = fetcher
        self.metrics = metrics
        self.tier_a = tier_a
        self.tier_b = tier_b
        self.tickers = tickers if tickers is not None else Tickers()
        self.idle_interval = idle_interval
        self.state = PollState.AWAITING_MARKET_OPEN
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        logger.info("Stop requested for poll loop")
        self._stop_event.set()

    async def _sleep(self, seconds: float) -> bool:
        """
        seconds 동안 대기합니다. stop()이 호출되면 즉시 깨어납니다.

        Returns:
            bool: 대기 중 정지 요청이 있었으면 True
        """
        if self.stopped:
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def wait_for_market_open(self) -> bool:
        self.state = PollState.AWAITING_MARKET_OPEN
        # 깨어난 뒤 다시 조회하여 개장이 확인될 때까지 반복한다
        while (night_time := await self.clock.seconds_until_open()) > 0:
            logger.info(f"Sleeping until market opens: seconds={night_time}")
            if await self._sleep(night_time):
                return False
        return True

    def refresh_tickers(self) -> None:
        self.state = PollState.CHECKING_TICKER_UPDATES
        new = self.ticker_store.check_for_update()
        if new is None:
            return
        logger.info(f"Switching tickers: {self.tickers.tickers} -> {new.tickers}")
        self.tickers = new
        self.metrics.retain(new.tickers)

    async def poll_symbols(self) -> None:
        self.state = PollState.ITERATING_SYMBOLS
        symbols = list(self.tickers.tickers)
        sleep_duration = delay_for(len(symbols), self.tier_a, self.tier_b)
        if sleep_duration is None:
            logger.info(f"No tickers to poll, idling: seconds={self.idle_interval}")
            await self._sleep(self.idle_interval)
            return

        logger.debug(f"Polling {len(symbols)} tickers: delay={sleep_duration}s")
        for symbol in symbols:
            price = await self.fetcher.fetch_price(symbol)
            if price is not None:
                self.metrics.update_stock_price(symbol, price)
            if await self._sleep(sleep_duration):
                return

    async def run_once(self) -> None:
        """
        폴링 사이클 한 번을 실행합니다.
        """
        if not await self.wait_for_market_open():
            return
        self.refresh_tickers()
        await self.poll_symbols()

    async def run(self) -> None:
        logger.info(f"Poll loop started: market={self.clock.market} tickers={self.tickers.tickers}")
        try:
            while not self.stopped:
                await self.run_once()
        finally:
            self.state = PollState.STOPPED
            logger.info("Poll loop stopped")
