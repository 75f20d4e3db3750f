import asyncio
import logging
import math
from typing import Any
import aiohttp
from quotewatch.providers.base import MarketDataProvider, ProviderAPIError

logger = logging.getLogger(__name__)


def parse_price(payload: Any) -> float | None:
    # {"price":"179.64000"} -> 179.64
    if not isinstance(payload, dict):
        return None
    price = payload.get("price")
    if isinstance(price, bool) or not isinstance(price, (str, int, float)):
        return None
    try:
        value = float(price)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


class PriceFetcher:
    def __init__(self, provider: MarketDataProvider):
        self.provider = provider

    async def fetch_price(self, symbol: str) -> float | None:
        """
        심볼의 현재 가격을 조회합니다.
        네트워크, 상태 코드, 응답 형식 오류는 로그만 남기고 None을 반환하여
        호출자가 다음 심볼로 넘어갈 수 있도록 합니다.

        Args:
            symbol (str): 티커 심볼

        Returns:
            float | None: 가격. 조회 실패 또는 가격 필드가 없으면 None
        """
        try:
            payload = await self.provider.get_price(symbol)
        except (aiohttp.ClientError, asyncio.TimeoutError, ProviderAPIError, ValueError) as e:
            logger.warning(f"Failed to fetch price: symbol={symbol} error={e!r}")
            return None

        price = parse_price(payload)
        if price is None:
            logger.debug(f"No price in response: symbol={symbol} payload={payload}")
        return price
