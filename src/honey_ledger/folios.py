from collections import defaultdict
from datetime import date


class FolioSequence:
    """
    Human-facing document numbers such as ``TAMB-2025-0007``.

    Numbering restarts every calendar year. Widths are a minimum; the counter
    keeps growing past it.
    """

    def __init__(self, prefix: str, width: int = 4):
        self.prefix = prefix
        self.width = width
        self._counters: dict[int, int] = defaultdict(int)

    def next(self, on: date | None = None) -> str:
        year = (on or date.today()).year
        self._counters[year] += 1
        return f"{self.prefix}-{year}-{self._counters[year]:0{self.width}d}"
