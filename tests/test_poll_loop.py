import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, call
from prometheus_client import CollectorRegistry
from quotewatch.core.config import DAILY_RATE_LIMIT, MINUTE_RATE_LIMIT
from quotewatch.core.poll_loop import PollLoop, PollState
from quotewatch.core.markets import StockMarket
from quotewatch.metrics.prometheus import PriceMetrics
from quotewatch.schemas.ticker import Tickers

@pytest.fixture
def clock():
    return MagicMock(seconds_until_open=AsyncMock(return_value=0), market=StockMarket.NYSE)

@pytest.fixture
def ticker_store():
    return MagicMock(check_for_update=MagicMock(return_value=None))

@pytest.fixture
def fetcher():
    prices = {"AAPL": 179.64, "MSFT": 410.1, "GOOG": None}
    return MagicMock(fetch_price=AsyncMock(side_effect=lambda symbol: prices.get(symbol)))

@pytest.fixture
def metrics():
    return PriceMetrics(registry=CollectorRegistry())

def _poll_loop(clock, ticker_store, fetcher, metrics, tickers):
    poll_loop = PollLoop(
        clock=clock,
        ticker_store=ticker_store,
        fetcher=fetcher,
        metrics=metrics,
        tier_a=MINUTE_RATE_LIMIT,
        tier_b=DAILY_RATE_LIMIT,
        tickers=Tickers(tickers=tickers),
        idle_interval=60,
    )
    poll_loop._sleep = AsyncMock(return_value=False)
    return poll_loop

def _price(metrics, symbol):
    return metrics.registry.get_sample_value("stock_price", {"symbol": symbol})

@pytest.mark.asyncio
async def test_run_once_fetches_in_order_and_waits_after_each(clock, ticker_store, fetcher, metrics):
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, ["AAPL", "MSFT", "GOOG"])

    await poll_loop.run_once()

    assert fetcher.fetch_price.await_args_list == [call("AAPL"), call("MSFT"), call("GOOG")]
    # 3개 티커: A 단계 60 - 8 // 3 = 58, 마지막 심볼 뒤에도 대기한다
    assert poll_loop._sleep.await_args_list == [call(58), call(58), call(58)]
    assert _price(metrics, "AAPL") == 179.64
    assert _price(metrics, "MSFT") == 410.1
    assert _price(metrics, "GOOG") is None
    assert poll_loop.state is PollState.ITERATING_SYMBOLS

@pytest.mark.asyncio
async def test_run_once_sleeps_until_market_opens(clock, ticker_store, fetcher, metrics):
    clock.seconds_until_open.side_effect = [5415, 0]
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, ["AAPL"])

    await poll_loop.run_once()

    assert clock.seconds_until_open.await_count == 2
    assert poll_loop._sleep.await_args_list[0] == call(5415)
    fetcher.fetch_price.assert_awaited_once_with("AAPL")

@pytest.mark.asyncio
async def test_run_once_swaps_tickers_on_update(clock, ticker_store, fetcher, metrics):
    metrics.update_stock_price("GOOG", 170.0)
    ticker_store.check_for_update.return_value = Tickers(tickers=["MSFT"])
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, ["AAPL", "GOOG"])

    await poll_loop.run_once()

    assert poll_loop.tickers.tickers == ["MSFT"]
    fetcher.fetch_price.assert_awaited_once_with("MSFT")
    # 1개 티커: A 단계 60 - 8 = 52
    poll_loop._sleep.assert_awaited_once_with(52)
    assert _price(metrics, "GOOG") is None
    assert _price(metrics, "MSFT") == 410.1

@pytest.mark.asyncio
async def test_run_once_with_empty_tickers_idles(clock, ticker_store, fetcher, metrics):
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, [])

    await poll_loop.run_once()

    fetcher.fetch_price.assert_not_awaited()
    poll_loop._sleep.assert_awaited_once_with(60)

@pytest.mark.asyncio
async def test_stop_during_symbol_sleep_ends_cycle(clock, ticker_store, fetcher, metrics):
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, ["AAPL", "MSFT"])
    poll_loop._sleep = AsyncMock(return_value=True)

    await poll_loop.run_once()

    fetcher.fetch_price.assert_awaited_once_with("AAPL")

@pytest.mark.asyncio
async def test_stop_during_market_sleep_skips_cycle(clock, ticker_store, fetcher, metrics):
    clock.seconds_until_open.return_value = 3600
    poll_loop = _poll_loop(clock, ticker_store, fetcher, metrics, ["AAPL"])
    poll_loop._sleep = AsyncMock(return_value=True)

    await poll_loop.run_once()

    ticker_store.check_for_update.assert_not_called()
    fetcher.fetch_price.assert_not_awaited()

@pytest.mark.asyncio
async def test_stop_interrupts_real_sleep(clock, ticker_store, fetcher, metrics):
    clock.seconds_until_open.return_value = 3600
    poll_loop = PollLoop(
        clock=clock,
        ticker_store=ticker_store,
        fetcher=fetcher,
        metrics=metrics,
        tier_a=MINUTE_RATE_LIMIT,
        tier_b=DAILY_RATE_LIMIT,
    )

    task = asyncio.create_task(poll_loop.run())
    await asyncio.sleep(0.05)
    poll_loop.stop()
    await asyncio.wait_for(task, timeout=1)

    assert poll_loop.state is PollState.STOPPED
    fetcher.fetch_price.assert_not_awaited()

@pytest.mark.asyncio
async def test_sleep_returns_false_on_timeout(clock, ticker_store, fetcher, metrics):
    poll_loop = PollLoop(
        clock=clock,
        ticker_store=ticker_store,
        fetcher=fetcher,
        metrics=metrics,
        tier_a=MINUTE_RATE_LIMIT,
        tier_b=DAILY_RATE_LIMIT,
    )

    assert await poll_loop._sleep(0.01) is False
    poll_loop.stop()
    assert await poll_loop._sleep(10) is True

@pytest.mark.asyncio
async def test_run_once_with_zero_idle_interval_returns_immediately(clock, ticker_store, fetcher, metrics):
    poll_loop = PollLoop(
        clock=clock,
        ticker_store=ticker_store,
        fetcher=fetcher,
        metrics=metrics,
        tier_a=MINUTE_RATE_LIMIT,
        tier_b=DAILY_RATE_LIMIT,
        idle_interval=0,
    )

    await asyncio.wait_for(poll_loop.run_once(), timeout=1)

    fetcher.fetch_price.assert_not_called()
    assert clock.seconds_until_open.await_count == 1
