"""
Page Value Object
One page of a paginated query
"""
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """Paginated result - immutable"""

    items: List[T] = field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages
