import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any
import aiohttp
import pytz
from quotewatch.core.markets import StockMarket
from quotewatch.providers.base import MarketDataProvider, ProviderAPIError
from quotewatch.schemas.market import MarketState

logger = logging.getLogger(__name__)


def parse_countdown(text: str) -> int:
    """
    "시:분:초" 형식의 카운트다운 문자열을 초 단위로 변환합니다.
    누락되었거나 숫자가 아닌 항목은 0으로 계산합니다.

    Args:
        text (str): 예) "1:30:15"

    Returns:
        int: 총 초 (예: 5415)
    """
    parts = text.split(":")
    values = []
    for i in range(3):
        part = parts[i].strip() if i < len(parts) else ""
        values.append(int(part) if part.isdecimal() else 0)
    hours, minutes, seconds = values
    return hours * 3600 + minutes * 60 + seconds


def parse_market_state(payload: Any) -> MarketState:
    """
    market_state 응답을 해석합니다.
    is_market_open 불리언을 가진 첫 번째 레코드가 결과를 결정하며,
    그런 레코드가 없거나 응답이 배열이 아니면 개장 상태로 봅니다.
    """
    if not isinstance(payload, list):
        return MarketState.open()

    for record in payload:
        if not isinstance(record, dict):
            continue
        is_market_open = record.get("is_market_open")
        if not isinstance(is_market_open, bool):
            continue
        if is_market_open:
            return MarketState.open()
        time_to_open = record.get("time_to_open")
        if not isinstance(time_to_open, str):
            time_to_open = "0:0:0"
        return MarketState.closed_for(parse_countdown(time_to_open))

    return MarketState.open()


class MarketClock:
    """
    시장 개장 여부를 조회하고, 폐장 중이면 개장까지 남은 시간을 계산합니다.
    조회에 실패하면 개장 상태(0초)로 간주하여 폴링이 멈추지 않도록 합니다.
    """
    def __init__(self, provider: MarketDataProvider, market: StockMarket):
        self.provider = provider
        self.market = market

    async def get_state(self) -> MarketState:
        try:
            payload = await self.provider.get_market_state(str(self.market))
        except (aiohttp.ClientError, asyncio.TimeoutError, ProviderAPIError, ValueError) as e:
            logger.warning(f"Failed to query market state, assuming open: market={self.market} error={e!r}")
            return MarketState.open()

        if not isinstance(payload, list):
            logger.warning(f"Unexpected market state response, assuming open: market={self.market} payload={payload}")
        return parse_market_state(payload)

    async def seconds_until_open(self) -> int:
        """
        개장까지 남은 시간(초)을 반환합니다.

        Returns:
            int: 개장 중이면 0, 폐장 중이면 다음 개장까지의 초
        """
        state = await self.get_state()
        if state.is_open:
            logger.debug(f"Market is open: market={self.market}")
            return 0

        wait = state.seconds_until_open
        reopens_at = datetime.now(pytz.timezone(self.market.timezone)) + timedelta(seconds=wait)
        logger.info(
            f"Market is closed: market={self.market} reopens_in={wait}s "
            f"reopens_at={reopens_at.strftime('%Y-%m-%d %H:%M:%S %Z')}"
        )
        return wait
