from enum import Enum


class StockMarket(str, Enum):
    """
    시장 상태를 조회할 수 있는 거래소 목록.
    값은 Twelve Data market_state API의 exchange 파라미터로 그대로 사용됩니다.
    """
    NYSE = "NYSE"
    NASDAQ = "NASDAQ"

    def __str__(self) -> str:
        return self.value

    @property
    def timezone(self) -> str:
        return MARKET_TIMEZONES[self]

    @classmethod
    def from_name(cls, name: str) -> "StockMarket":
        try:
            return cls(name.strip().upper())
        except ValueError:
            supported = ", ".join(m.value for m in cls)
            raise ValueError(f"Unsupported market '{name}'. Supported markets: {supported}")


MARKET_TIMEZONES = {
    StockMarket.NYSE: "America/New_York",
    StockMarket.NASDAQ: "America/New_York",
    # 확장 시 여기에 추가
}
