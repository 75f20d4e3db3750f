import logging
from typing import Any
import aiohttp
from .base import MarketDataProvider, ProviderAPIError

logger = logging.getLogger(__name__)

class TwelveDataClient(MarketDataProvider):
    """
    Twelve Data REST API와 상호작용하기 위한 클래스.

    가격(/price)과 시장 상태(/market_state) 두 엔드포인트만 사용합니다.
    실패 시 예외를 그대로 올리며, 실패를 허용하는 처리는 services 계층에서 담당합니다.
    """
    name = "twelvedata"
    server_url = "https://api.twelvedata.com"

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get(self, endpoint: str, params: dict[str, str]) -> Any:
        url = f"{self.server_url}{endpoint}"
        headers = {"accept": "application/json"}
        # apikey는 로그에 남기지 않는다
        query = {**params, "apikey": self.api_key}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=query, headers=headers) as res:
                    if res.status != 200:
                        raise ProviderAPIError(self.name, res.status, await res.text())
                    return await res.json(content_type=None)
        except aiohttp.ClientError as e:
            logger.error(f"Network error while calling {endpoint} {params}: {e}")
            raise

    async def get_price(self, symbol: str) -> Any:
        """
        Twelve Data에서 심볼의 실시간 가격을 가져옵니다.

        Args:
            symbol (str): 티커 심볼 (예: "AAPL")

        Returns:
            Any: 응답 JSON (예: {"price": "179.64000"})

        Raises:
            ProviderAPIError: 200 이외의 응답을 받은 경우
            aiohttp.ClientError: 네트워크 오류
            asyncio.TimeoutError: 요청 시간 초과
        """
        return await self._get("/price", {"symbol": symbol})

    async def get_market_state(self, exchange: str) -> Any:
        """
        Twelve Data에서 거래소의 개장 여부를 가져옵니다.

        Args:
            exchange (str): 거래소 코드 (예: "NYSE")

        Returns:
            Any: 응답 JSON (예: [{"is_market_open": false, "time_to_open": "1:30:15"}])
        """
        return await self._get("/market_state", {"exchange": exchange})
