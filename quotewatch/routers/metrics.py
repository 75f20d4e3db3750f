from fastapi import APIRouter, Depends, Response
from quotewatch.core.poll_loop import PollLoop, PollState
from quotewatch.dependencies.injection import get_metrics, get_poll_loop
from quotewatch.metrics.prometheus import PriceMetrics

router = APIRouter()

@router.get("/metrics")
def metrics(price_metrics: PriceMetrics = Depends(get_metrics)):
    """
    Prometheus scrape 대상. stock_price gauge를 텍스트 형식으로 반환합니다.
    """
    return Response(content=price_metrics.export_text(), media_type=price_metrics.content_type)

@router.get("/health")
def health(poll_loop: PollLoop | None = Depends(get_poll_loop)):
    poll_state = poll_loop.state if poll_loop is not None else PollState.STOPPED
    return {"status": "ok", "state": poll_state.value}
