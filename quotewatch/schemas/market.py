from pydantic import BaseModel, Field


class MarketState(BaseModel):
    """
    한 번의 시장 상태 조회 결과. 캐시하지 않고 매 조회마다 새로 만듭니다.
    """
    is_open: bool
    seconds_until_open: int = Field(default=0, ge=0)

    @classmethod
    def open(cls) -> "MarketState":
        return cls(is_open=True)

    @classmethod
    def closed_for(cls, seconds: int) -> "MarketState":
        return cls(is_open=False, seconds_until_open=seconds)
