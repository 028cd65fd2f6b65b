"""Domain errors raised by the service layer."""


class MimiError(Exception):
    """Base class for request-level failures."""


class SymbolNotFound(MimiError):
    def __init__(self, symbol: str, bars: int = 0):
        self.symbol = symbol
        self.bars = bars
        super().__init__(f"Not enough data for {symbol} ({bars} bars)")


class InvalidRequest(MimiError):
    pass
