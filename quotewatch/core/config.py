import os
from pathlib import Path
from pydantic import BaseModel, Field
from quotewatch.core.markets import StockMarket
from quotewatch.core.rate_budget import RateLimit

# Twelve Data 무료 플랜 기준 호출 제한
MINUTE_RATE_LIMIT = RateLimit(calls=8, period_seconds=60)
# 6.5시간(정규장) 동안 800회
DAILY_RATE_LIMIT = RateLimit(calls=800, period_seconds=int(6.5 * 60 * 60))


class Settings(BaseModel):
    """
    프로세스 실행에 필요한 설정값.
    """
    api_key: str = Field(repr=False)
    market: StockMarket = StockMarket.NYSE
    tickers_path: Path = Path("tickers")
    metrics_host: str = "127.0.0.1"
    metrics_port: int = 9091
    http_timeout: float = Field(default=10.0, gt=0)
    tier_a: RateLimit = MINUTE_RATE_LIMIT
    tier_b: RateLimit = DAILY_RATE_LIMIT

    @classmethod
    def from_env(cls):
        """
        환경 변수에서 설정값을 로드하여 Settings 인스턴스를 생성합니다.

        Returns:
            Settings: Settings 인스턴스

        Raises:
            ValueError: API_KEY가 없거나 MARKET 값이 지원되지 않을 경우.
        """
        api_key = os.getenv("API_KEY")
        if not api_key:
            raise ValueError("API_KEY must be set in environment variables.")

        return cls(
            api_key=api_key,
            market=StockMarket.from_name(os.getenv("MARKET", "NYSE")),
            tickers_path=Path(os.getenv("TICKERS_PATH", "tickers")),
            metrics_host=os.getenv("METRICS_HOST", "127.0.0.1"),
            metrics_port=int(os.getenv("METRICS_PORT", "9091")),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "10")),
        )

    @property
    def idle_interval(self) -> int:
        # 티커가 없을 때 다음 사이클까지 기다리는 시간
        return self.tier_a.period_seconds
