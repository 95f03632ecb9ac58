"""
RatingScore Value Object
Conversation rating score with validation (1-5)
"""
from dataclasses import dataclass

MIN_SCORE = 1
MAX_SCORE = 5


@dataclass(frozen=True)
class RatingScore:
    """Conversation rating value object - immutable"""

    value: int

    def __post_init__(self):
        """Validate rating range"""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Rating score must be an integer")

        if not MIN_SCORE <= self.value <= MAX_SCORE:
            raise ValueError(f"Rating score must be between {MIN_SCORE} and {MAX_SCORE}")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value}/{MAX_SCORE}"
