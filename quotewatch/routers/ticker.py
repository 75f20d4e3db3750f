import logging
from fastapi import APIRouter, Depends, HTTPException, status
from quotewatch.dependencies.injection import get_ticker_store
from quotewatch.repository.ticker import TickerStore
from quotewatch.schemas.ticker import Tickers

router = APIRouter()

logger = logging.getLogger(__name__)

@router.get("/tickers", response_model=Tickers)
def get_tickers(ticker_store: TickerStore = Depends(get_ticker_store)):
    return ticker_store.load()

@router.put("/tickers", response_model=Tickers)
def update_tickers(data: Tickers, ticker_store: TickerStore = Depends(get_ticker_store)):
    """
    티커 목록을 저장합니다. 폴링 루프는 다음 사이클에 파일 변경을 감지하여 반영합니다.
    """
    try:
        ticker_store.persist(data)
    except OSError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="티커 저장 실패")
    logger.info(f"Tickers updated via API: {data.tickers}")
    return data
