class BingoError(Exception):
    """Base error for bingo session domain exceptions."""


class NoAvailableNumbersError(BingoError):
    """Raised when a draw is requested but every number has already been drawn."""

    code = "no-available-numbers"

    def __init__(self) -> None:
        super().__init__(self.code)


class InvalidCsvHeaderError(BingoError, ValueError):
    """Raised when the CSV header does not match the prize schema exactly."""

    code = "invalid-csv-header"

    def __init__(self, header=None) -> None:
        self.header = list(header) if header is not None else None
        super().__init__(self.code)


class PrizeNotFoundError(BingoError, KeyError):
    """Raised when a prize id does not exist in the stored list."""

    def __init__(self, prize_id: str) -> None:
        self.prize_id = prize_id
        super().__init__(prize_id)

    def __str__(self) -> str:
        return f"Prize not found: {self.prize_id}"


class InvalidReorderError(BingoError, ValueError):
    """Raised when a reorder request is not a permutation of the current prize ids."""
