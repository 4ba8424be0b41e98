"""Countries and the statistics of the members who live in them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from cohorthub.models import Country, Rating, Submission, User
from cohorthub.store import Database, RecordNotFound


@dataclass
class UserStat:
    """One member's results as listed under a country."""

    name: str = ""
    rating: int = 0
    total_time_spent: int = 0
    total_problems_solved: int = 0


@dataclass
class CountrySummary:
    """A country with totals over its members."""

    id: int = 0
    name: str = ""
    short_code: str = ""
    total_users: int = 0
    total_time_spent: int = 0
    total_problems_solved: int = 0
    average_rating: int = 0


@dataclass
class CountryDetail:
    """A country with the statistics of each of its members."""

    id: int = 0
    name: str = ""
    short_code: str = ""
    users: list[UserStat] = field(default_factory=list)


def _created(rating: Rating) -> datetime:
    return rating.created_at or datetime.min


class CountryRepository:
    """Country records and the statistics drawn from their members."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _submissions(self, user_ids: Iterable[int]) -> list[Submission]:
        ids = set(user_ids)
        return self._db.find(Submission, lambda submission: submission.user_id in ids)

    @staticmethod
    def _solved(submissions: Iterable[Submission]) -> int:
        return len({s.problem_id for s in submissions if s.verified})

    @staticmethod
    def _time_spent(submissions: Iterable[Submission]) -> int:
        return sum(s.time_spent for s in submissions)

    def _latest_points(self, user_id: int) -> int:
        ratings = self._db.find(Rating, {"user_id": user_id})
        if not ratings:
            return 0
        return max(ratings, key=_created).points

    def all(self) -> list[CountrySummary]:
        """Return every country without member statistics."""
        return [
            CountrySummary(id=c.id, name=c.name, short_code=c.short_code)
            for c in self._db.find(Country)
        ]

    def get_detail(self, country_id: int) -> CountryDetail:
        """Return a country with its members' stats; an empty detail if it is unknown."""
        try:
            country = self._db.get(Country, country_id)
        except RecordNotFound:
            return CountryDetail()
        stats = []
        for user in self._db.find(User, {"country_id": country_id}):
            submissions = self._submissions([user.id])
            stats.append(
                UserStat(
                    name=user.name,
                    rating=self._latest_points(user.id),
                    total_time_spent=self._time_spent(submissions),
                    total_problems_solved=self._solved(submissions),
                )
            )
        return CountryDetail(
            id=country.id, name=country.name, short_code=country.short_code, users=stats
        )

    def create(self, name: str, short_code: str) -> Country:
        return self._db.create(Country(name=name, short_code=short_code))

    def update(self, country_id: int, name: str, short_code: str) -> Country:
        """Rename a stored country; raise RecordNotFound if it is unknown."""
        country = self._db.get(Country, country_id)
        country.name = name
        country.short_code = short_code
        return self._db.save(country)

    def delete(self, country_id: int) -> None:
        self._db.delete(self._db.get(Country, country_id))

    def exists(self, name: str, short_code: str) -> bool:
        """Tell whether a country has this name or this short code."""
        return bool(
            self._db.find(
                Country,
                lambda country: country.name == name or country.short_code == short_code,
            )
        )

    def all_with_stats(self) -> list[CountrySummary]:
        """Return every country with member count, time spent and problems solved.

        Members carry no rating of their own, so the average rating stays 0.
        """
        result = []
        for country in self._db.find(Country):
            users = self._db.find(User, {"country_id": country.id})
            submissions = self._submissions(user.id for user in users) if users else []
            result.append(
                CountrySummary(
                    id=country.id,
                    name=country.name,
                    short_code=country.short_code,
                    total_users=len(users),
                    total_time_spent=self._time_spent(submissions),
                    total_problems_solved=self._solved(submissions),
                    average_rating=0,
                )
            )
        return result

    def count_users(self, country_id: int) -> int:
        return len(self._db.find(User, {"country_id": country_id}))


def _require(name: str, short_code: str) -> None:
    if not name:
        raise ValueError("country name cannot be empty")
    if not short_code:
        raise ValueError("country short code cannot be empty")


class CountryService:
    """Country operations with input validation."""

    def __init__(self, repository: CountryRepository) -> None:
        self._repository = repository

    def all_countries(self) -> list[CountrySummary]:
        return self._repository.all_with_stats()

    def get_country(self, country_id: int) -> CountryDetail:
        return self._repository.get_detail(country_id)

    def create_country(self, name: str, short_code: str) -> Country:
        _require(name, short_code)
        return self._repository.create(name, short_code)

    def update_country(self, country_id: int, name: str, short_code: str) -> Country:
        _require(name, short_code)
        return self._repository.update(country_id, name, short_code)

    def delete_country(self, country_id: int) -> None:
        self._repository.delete(country_id)

    def country_exists(self, name: str, short_code: str) -> bool:
        return self._repository.exists(name, short_code)

    def check_country_exists(self, name: str, short_code: str) -> bool:
        _require(name, short_code)
        return self._repository.exists(name, short_code)

    def all_countries_with_stats(self) -> list[CountrySummary]:
        return self._repository.all_with_stats()

    def count_users(self, country_id: int) -> int:
        return self._repository.count_users(country_id)