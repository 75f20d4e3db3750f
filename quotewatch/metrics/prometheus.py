import logging
from typing import Iterable, Optional
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

logger = logging.getLogger(__name__)


class PriceMetrics:
    """
    가격 관측값을 Prometheus gauge(stock_price{symbol=...})로 노출합니다.

    폴링 루프가 값을 기록하고 /metrics 핸들러가 읽습니다.
    prometheus_client의 gauge는 스레드 안전하며 심볼별로 마지막 값만 유지합니다.

    Usage:
        metrics = PriceMetrics()
        metrics.update_stock_price("AAPL", 179.64)
        text = metrics.export_text()
    """
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Args:
            registry: Prometheus registry (None이면 새로 생성, 테스트 시 격리용)
        """
        self.registry = registry if registry is not None else CollectorRegistry()
        self.stock_price = Gauge(
            "stock_price",
            "Current stock price",
            ["symbol"],
            registry=self.registry,
        )
        self._symbols: set[str] = set()

    def update_stock_price(self, symbol: str, price: float) -> None:
        logger.debug(f"Updating stock price: symbol={symbol} price={price}")
        self.stock_price.labels(symbol=symbol).set(price)
        self._symbols.add(symbol)

    def retain(self, symbols: Iterable[str]) -> None:
        """
        감시 목록에서 빠진 심볼의 시계열을 제거합니다.
        """
        keep = set(symbols)
        for symbol in self._symbols - keep:
            self.stock_price.remove(symbol)
            logger.info(f"Removed stock price series: symbol={symbol}")
        self._symbols &= keep

    def export_text(self) -> bytes:
        return generate_latest(self.registry)
