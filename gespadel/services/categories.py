"""Category/gender matching against a tournament's offered pairs."""
from __future__ import annotations

from typing import Optional

from gespadel.models.tournament import Tournament, category_number


def is_offered(tournament: Tournament, gender: Optional[str], category: Optional[str]) -> bool:
    """True if (gender, category) is one of the tournament's offered pairs."""
    if not gender or not category:
        return False
    return category in tournament.categories_for(gender)


def offered_categories(tournament: Tournament, gender: str) -> list[str]:
    """Offered categories for gender, strongest first."""
    return sorted(tournament.categories_for(gender), key=category_sort_key)


def category_sort_key(category: str) -> tuple[int, str]:
    return (category_number(category), category)
