from pydantic import BaseModel, field_validator


class Tickers(BaseModel):
    """
    감시 대상 티커 목록. 티커 파일의 {"tickers": [...]} 구조와 동일합니다.
    저장된 순서를 유지하며 공백 문자열과 중복은 제거됩니다.
    """
    tickers: list[str] = []

    @field_validator("tickers")
    @classmethod
    def normalize(cls, value: list[str]) -> list[str]:
        result = []
        for symbol in value:
            symbol = symbol.strip()
            if symbol and symbol not in result:
                result.append(symbol)
        return result

    def __len__(self) -> int:
        return len(self.tickers)
