"""Contests, the ratings they produce and the rules around them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from cohorthub.cache import CacheRepository
from cohorthub.models import Contest, Rating, User
from cohorthub.rating import calculate_elo
from cohorthub.standings import PROFILE_PREFIX, Standings, StandingsRepository, StandingsRow
from cohorthub.store import Database, RecordNotFound

_log = logging.getLogger(__name__)

INITIAL_RATING = 1400
PERFORMANCE_K_FACTOR = 32
ELO_K_FACTOR = 32
STANDINGS_CACHE_TTL = timedelta(hours=24)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class Performance:
    """How one hub member did in a contest."""

    user_id: int = 0
    solved: int = 0
    penalty: int = 0
    score: float = 0.0
    handle: str = ""
    rank: int = 0
    gain: int = 0
    rating: int = 0


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _after_prefix(link: str, prefix: str) -> int | None:
    if not link.startswith(prefix):
        return None
    return _leading_int(link[len(prefix):])


def contest_id_from_link(link: str) -> int:
    """Return the contest id in a contest, gym or group contest URL."""
    if "/contest/" in link:
        if "/group/" in link:
            parts = link.split("/contest/")
            if len(parts) != 2:
                raise ValueError(f"invalid group contest URL format: {link}")
            contest_id = _leading_int(parts[1])
            if contest_id is None:
                raise ValueError(f"invalid group contest ID format: {link}")
            return contest_id
        contest_id = _after_prefix(link, "https://codeforces.com/contest/")
        if contest_id is None:
            raise ValueError(f"invalid contest URL format: {link}")
        return contest_id
    if "/gym/" in link:
        contest_id = _after_prefix(link, "https://codeforces.com/gym/")
        if contest_id is None:
            raise ValueError(f"invalid gym URL format: {link}")
        return contest_id
    raise ValueError(
        f"URL must contain either /contest/, /gym/, or /group/.../contest/: {link}"
    )


def collect_performances(
    rows: Iterable[StandingsRow], handle_to_user: Mapping[str, int]
) -> list[Performance]:
    """Score the rows of known handles, best score first, lower penalty breaking ties."""
    performances = []
    for row in rows:
        if not row.party.members:
            continue
        handle = row.party.members[0].handle
        user_id = handle_to_user.get(handle, 0)
        if not user_id:
            continue
        accepted = [result for result in row.problem_results if result.points > 0]
        solved = len(accepted)
        penalty = sum(result.rejected_attempt_count * 10 for result in accepted)
        performances.append(
            Performance(
                user_id=user_id,
                solved=solved,
                penalty=penalty,
                score=float(solved * 100 - penalty * 2),
                handle=handle,
            )
        )
    performances.sort(key=lambda perf: (-perf.score, perf.penalty))
    return performances


def rate_performances(performances: Iterable[Performance]) -> list[Performance]:
    """Return copies of ordered performances with rank, gain and rating filled in."""
    ordered = list(performances)
    total = len(ordered)
    rated = []
    for position, perf in enumerate(ordered):
        expected = 1.0 - position / total
        actual = perf.score / 100.0
        gain = int(PERFORMANCE_K_FACTOR * (actual - expected))
        rated.append(
            replace(perf, rank=position + 1, gain=gain, rating=INITIAL_RATING + gain)
        )
    return rated


def _handles_from_ratings(ratings: Iterable[Rating]) -> dict[str, int]:
    handles: dict[str, int] = {}
    for rating in ratings:
        if rating.user is None or not rating.user.codeforces.startswith(PROFILE_PREFIX):
            continue
        handles.setdefault(rating.user.codeforces[len(PROFILE_PREFIX):], rating.user_id)
    return handles


class ContestRepository:
    """Contest records, their ratings and their standings."""

    def __init__(self, db: Database, standings: StandingsRepository) -> None:
        self._db = db
        self._standings = standings

    def _with_ratings(self, contest: Contest) -> Contest:
        ratings = self._db.find(Rating, {"contest_id": contest.id})
        for rating in ratings:
            try:
                rating.user = self._db.get(User, rating.user_id)
            except RecordNotFound:
                rating.user = None
        contest.ratings = ratings
        return contest

    def _apply(self, contest: Contest, rated: list[Performance], persist: bool) -> None:
        for perf in rated:
            rating = next((r for r in contest.ratings if r.user_id == perf.user_id), None)
            if rating is None:
                continue
            rating.points = perf.rating
            rating.rank = perf.rank
            rating.solved = perf.solved
            rating.penalty = perf.penalty
            rating.gain = perf.gain
            if persist:
                try:
                    self.update_rating(contest.id, perf.user_id, perf.rating)
                except Exception as exc:
                    _log.warning(
                        "error updating rating for user %d in contest %d: %s",
                        perf.user_id,
                        contest.id,
                        exc,
                    )

    def all_contests(self) -> list[Contest]:
        """Return every contest, newest id first, with ratings recomputed from standings."""
        contests = [self._with_ratings(contest) for contest in self._db.find(Contest)]
        _log.info("found %d contests in database", len(contests))
        for contest in contests:
            try:
                standings = self.get_standings(contest.id)
            except Exception as exc:
                _log.warning("error fetching standings for contest %d: %s", contest.id, exc)
                continue
            contest.standings = standings
            performances = collect_performances(
                standings.rows, _handles_from_ratings(contest.ratings)
            )
            self._apply(contest, rate_performances(performances), persist=True)
        contests.sort(key=lambda contest: contest.id, reverse=True)
        return contests

    def get_by_id(self, contest_id: int) -> Contest:
        """Return a contest with its standings and freshly computed ratings."""
        contest = self._with_ratings(self._db.get(Contest, contest_id))
        standings = self.get_standings(contest.id)
        performances = collect_performances(
            standings.rows, _handles_from_ratings(contest.ratings)
        )
        self._apply(contest, rate_performances(performances), persist=False)
        contest.standings = standings
        return contest

    def save_contest(self, contest: Contest) -> Contest:
        """Store a contest taken from its link and rate the hub members who took part."""
        contest.id = contest_id_from_link(contest.link)
        self._db.create(replace(contest, ratings=[], standings=None))

        with self._db.transaction():
            users = self._db.find(User, lambda user: bool(user.codeforces))
            standings = self.get_standings(contest.id)
            handles = {
                user.codeforces.removeprefix(PROFILE_PREFIX): user.id for user in users
            }
            performances = collect_performances(standings.rows, handles)
            now = datetime.now()
            for perf in rate_performances(performances):
                self._db.create(
                    Rating(
                        contest_id=contest.id,
                        user_id=perf.user_id,
                        rank=perf.rank,
                        penalty=perf.penalty,
                        solved=perf.solved,
                        points=perf.rating,
                        gain=perf.gain,
                        created_at=now,
                        updated_at=now,
                    )
                )
        return contest

    def all_ratings(self, contest_id: int) -> list[Rating]:
        return self._db.find(Rating, {"contest_id": contest_id})

    def update_rating(self, contest_id: int, user_id: int, new_rating: int) -> None:
        """Set the points of a user's rating in a contest."""
        for rating in self._db.find(Rating, {"contest_id": contest_id, "user_id": user_id}):
            rating.points = new_rating
            self._db.save(rating)

    def get_standings(self, contest_id: int) -> Standings:
        return self._standings.get(contest_id)

    def save_standings(self, contest_id: int, standings: Standings) -> None:
        self._standings.save(contest_id, standings)

    def contest_standings(self, contest_id: int) -> Standings:
        return self._standings.contest_standings(contest_id)


class ContestService:
    """Contest operations, with standings mirrored into a cache."""

    def __init__(self, repository: ContestRepository, cache: CacheRepository) -> None:
        self._repository = repository
        self._cache = cache

    def all_contests(self) -> list[Contest]:
        return self._repository.all_contests()

    def get_contest(self, contest_id: int) -> Contest:
        return self._repository.get_by_id(contest_id)

    def add_contest(self, contest: Contest) -> Contest:
        return self._repository.save_contest(contest)

    def get_standings(self, contest_id: int) -> Standings:
        return self._repository.get_standings(contest_id)

    def update_ratings(self, contest_id: int, standings: Standings) -> None:
        """Move each ranked user's rating towards their place against the field."""
        user_ratings = {
            rating.user_id: float(rating.points)
            for rating in self._repository.all_ratings(contest_id)
        }
        rows = standings.rows
        for position, row in enumerate(rows):
            if not row.party.members:
                continue
            user_id = row.party.members[0].id
            current = user_ratings.get(user_id, 0.0)
            score = 1.0 - position / len(rows)
            opponents = [
                user_ratings.get(other.party.members[0].id, 0.0)
                for other_position, other in enumerate(rows)
                if other_position != position and other.party.members
            ]
            if opponents:
                average = sum(opponents) / len(opponents)
                new_rating = calculate_elo(current, average, score, k_factor=ELO_K_FACTOR)
                self._repository.update_rating(contest_id, user_id, int(new_rating))

    def save_standings(self, contest_id: int, standings: Standings) -> None:
        """Store standings for an existing contest and cache them."""
        self._repository.get_by_id(contest_id)
        self._repository.save_standings(contest_id, standings)
        self._cache.set(f"standings:{contest_id}", standings, STANDINGS_CACHE_TTL)

    def clear_standings_cache(self, contest_id: int) -> None:
        """Drop the cached standings of an existing contest."""
        self._repository.get_by_id(contest_id)
        self._cache.delete(f"standings:{contest_id}")