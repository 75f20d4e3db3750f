from fastapi import HTTPException, status
from quotewatch.core.poll_loop import PollLoop
from quotewatch.core.state import state
from quotewatch.metrics.prometheus import PriceMetrics
from quotewatch.repository.ticker import TickerStore

def get_metrics() -> PriceMetrics:
    return state.metrics

def get_ticker_store() -> TickerStore:
    if state.ticker_store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Ticker store not initialized")
    return state.ticker_store

def get_poll_loop() -> PollLoop | None:
    return state.poll_loop
