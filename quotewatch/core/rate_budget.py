from pydantic import BaseModel, Field


class RateLimit(BaseModel, frozen=True):
    """
    공급자가 강제하는 호출 제한 한 단계 (period_seconds 동안 calls 회).
    """
    calls: int = Field(ge=0)
    period_seconds: int = Field(ge=0)


def _saturating_sub(a: int, b: int) -> int:
    # 음수가 되는 대신 0에서 멈춘다
    return a - b if a > b else 0


def compute_delay(num_tickers: int, limit_a: int, period_a: int, limit_b: int, period_b: int) -> int | None:
    """
    티커 수와 두 단계의 호출 제한으로부터 심볼 호출 사이의 대기 시간(초)을 계산합니다.

    A 단계: period_a - floor(limit_a / num_tickers)
    B 단계: period_b - (limit_b - num_tickers)
    모든 뺄셈은 0에서 포화되며, 두 값 중 더 작은(엄격한) 값을 반환합니다.

    B 단계는 A 단계처럼 티커당 몫으로 나누지 않고 티커 수를 뺍니다.
    기존 호출 모델과의 호환을 위해 그대로 유지하고 있으며 의도가 확인되면 재검토가 필요합니다.

    Args:
        num_tickers (int): 이번 사이클에 조회할 티커 수
        limit_a (int): A 단계 호출 한도
        period_a (int): A 단계 기간(초)
        limit_b (int): B 단계 호출 한도
        period_b (int): B 단계 기간(초)

    Returns:
        int | None: 호출 사이 대기 시간(초). 티커가 없으면 None
    """
    if num_tickers == 0:
        return None

    calls_per_ticker_a = limit_a // num_tickers
    delay_a = _saturating_sub(period_a, calls_per_ticker_a)

    calls_left_b = _saturating_sub(limit_b, num_tickers)
    delay_b = _saturating_sub(period_b, calls_left_b)

    return min(delay_a, delay_b)


def delay_for(num_tickers: int, tier_a: RateLimit, tier_b: RateLimit) -> int | None:
    return compute_delay(
        num_tickers,
        tier_a.calls,
        tier_a.period_seconds,
        tier_b.calls,
        tier_b.period_seconds,
    )
