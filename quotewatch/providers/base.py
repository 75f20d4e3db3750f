from abc import ABC, abstractmethod
from typing import Any


class ProviderAPIError(Exception):
    """
    시세 제공자 API가 200 이외의 상태 코드를 반환했을 때 발생합니다.
    """
    def __init__(self, provider: str, status: int, body: str):
        self.provider = provider
        self.status = status
        self.body = body
        super().__init__(f"{provider} API Error: {status} - {body}")


class MarketDataProvider(ABC):
    name = None
    server_url = None

    @abstractmethod
    async def get_price(self, symbol: str) -> Any:
        """
        심볼의 현재 가격 응답(JSON)을 그대로 반환합니다.
        """

    @abstractmethod
    async def get_market_state(self, exchange: str) -> Any:
        """
        거래소의 시장 상태 응답(JSON)을 그대로 반환합니다.
        """
