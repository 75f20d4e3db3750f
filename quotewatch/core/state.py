from quotewatch.core.poll_loop import PollLoop
from quotewatch.metrics.prometheus import PriceMetrics
from quotewatch.repository.ticker import TickerStore


class AppState:
    """
    애플리케이션 전역 상태를 관리하는 클래스.
    폴링 루프와 HTTP 핸들러가 공유하는 것은 metrics 레지스트리뿐입니다.
    """
    def __init__(self):
        self.metrics = PriceMetrics()
        self.ticker_store: TickerStore | None = None
        self.poll_loop: PollLoop | None = None

# 싱글톤 인스턴스 생성
state = AppState()
