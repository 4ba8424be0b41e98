"""Rating titles, divisions and Elo arithmetic."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from cohorthub.models import Rating

_START_ELO = 1400
_DEFAULT_K_FACTOR = 40


def title_and_division(points: int) -> tuple[str, int]:
    """Return the title and division for a rating."""
    if points < 700:
        return "Unrated", 3
    if points <= 999:
        return "Coder", 3
    if points <= 1299:
        return "Solver", 3
    if points <= 1599:
        return "Strategist", 2
    if points <= 1899:
        return "Knight", 2
    if points <= 2199:
        return "Ninja", 2
    if points <= 2499:
        return "Wizard", 1
    if points <= 2799:
        return "Pro", 1
    return "Elite", 1


def problem_count_rating(problem_count: int) -> int:
    """Return a one-to-five rating for a contest by its problem count."""
    if problem_count >= 10:
        return 5
    if problem_count >= 7:
        return 4
    if problem_count >= 4:
        return 3
    if problem_count >= 2:
        return 2
    return 1


def calculate_elo(
    current_rating: float,
    opponent_rating: float,
    score: float,
    k_factor: float = _DEFAULT_K_FACTOR,
) -> float:
    """Return the new rating after scoring ``score`` against an opponent."""
    expected = 1 / (1 + 10 ** ((opponent_rating - current_rating) / 400))
    return current_rating + k_factor * (score - expected)


def rankings_from_standings(contest_id: int, payload: Mapping[str, Any]) -> list[Rating]:
    """Turn a standings payload into ratings, one per row in row order."""
    rows = (payload.get("result") or {}).get("rows") or []
    new_rating = int(calculate_elo(_START_ELO, _START_ELO, 1))
    now = datetime.now()
    return [
        Rating(
            contest_id=contest_id,
            user_id=position,
            rank=position,
            solved=sum(1 for result in row.get("problemResults") or [] if result.get("points", 0) > 0),
            gain=new_rating - _START_ELO,
            points=new_rating,
            created_at=now,
            updated_at=now,
        )
        for position, row in enumerate(rows, start=1)
    ]