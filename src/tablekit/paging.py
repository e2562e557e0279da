"""
Page of fetched rows.
"""
import math
from dataclasses import dataclass, field
from typing import Any

__all__ = ['PagingData']


@dataclass
class PagingData:
    data: list[Any] = field(default_factory=list)
    current_page: int = 1
    page_size: int = 0
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages
