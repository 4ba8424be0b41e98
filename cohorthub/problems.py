"""Storage and validation rules for practice problems."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Mapping, Optional

from cohorthub.models import Problem
from cohorthub.store import Database, RecordNotFound

DEFAULT_PAGE_SIZE = 50
DIFFICULTIES = frozenset({"easy", "medium", "hard", "none"})

_PROBLEM_FIELDS = frozenset(f.name for f in fields(Problem))


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return default


class ProblemRepository:
    """Problem records in a database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, problem: Problem) -> Problem:
        return self._db.create(replace(problem))

    def delete(self, problem_id: int) -> None:
        self._db.delete(Problem(id=problem_id))

    def get_by_id(self, problem_id: int) -> Problem:
        return self._db.get(Problem, problem_id)

    def get_by_name(self, name: str) -> list[Problem]:
        """Return the first problem whose name contains ``name``, as a list."""
        return [self._db.first(Problem, lambda problem: name in problem.name)]

    def update(self, problem: Problem) -> Problem:
        return self._db.save(replace(problem))

    def search(self, name: str = "", filters: Optional[Mapping[str, Any]] = None) -> list[Problem]:
        """Return one page of problems matching ``name`` and field filters.

        ``limit`` and ``page`` in ``filters`` choose the page (50 per page,
        first page by default); every other key names a field whose text
        must contain the value, ignoring case.
        """
        conditions = dict(filters or {})
        limit = _positive_int(conditions.pop("limit", None), DEFAULT_PAGE_SIZE)
        page = _positive_int(conditions.pop("page", None), 1)

        unknown = sorted(set(conditions) - _PROBLEM_FIELDS)
        if unknown:
            raise ValueError(f"unknown problem field: {', '.join(unknown)}")
        needles = {key: str(value).lower() for key, value in conditions.items()}

        def matches(problem: Problem) -> bool:
            if name and name not in problem.name:
                return False
            return all(
                needle in str(getattr(problem, key)).lower() for key, needle in needles.items()
            )

        offset = (page - 1) * limit
        return self._db.find(Problem, matches)[offset:offset + limit]


class ProblemService:
    """Problem operations with input validation."""

    def __init__(self, repository: ProblemRepository) -> None:
        self._repository = repository

    def create_problem(self, problem: Problem) -> Problem:
        """Validate and store a new problem."""
        if not problem.name:
            raise ValueError("problem name cannot be empty")
        if not problem.tag:
            raise ValueError("problem must have at least 1 tag")
        if problem.difficulty not in DIFFICULTIES:
            raise ValueError("invalid difficulty level")
        if not problem.platform:
            raise ValueError("platform cannot be empty")
        if not problem.link:
            raise ValueError("link cannot be empty")
        return self._repository.create(problem)

    def _existing(self, problem_id: int) -> Problem:
        try:
            return self._repository.get_by_id(problem_id)
        except RecordNotFound:
            raise RecordNotFound("problem not found") from None

    def delete_problem(self, problem_id: int) -> None:
        self._existing(problem_id)
        self._repository.delete(problem_id)

    def get_problem(self, problem_id: int) -> Problem:
        return self._existing(problem_id)

    def get_problems_by_name(self, name: str) -> list[Problem]:
        try:
            return self._repository.get_by_name(name)
        except RecordNotFound:
            raise RecordNotFound("problem not found") from None

    def update_problem(self, problem_id: int, problem: Problem) -> Problem:
        """Merge the non-empty fields of ``problem`` into the stored one."""
        existing = self._existing(problem_id)
        if not problem.name:
            raise ValueError("problem name cannot be empty")
        if problem.difficulty and problem.difficulty not in DIFFICULTIES:
            raise ValueError("invalid difficulty level")
        if not problem.platform:
            raise ValueError("platform cannot be empty")
        if not problem.link:
            raise ValueError("link cannot be empty")

        if problem.contest_id is not None:
            existing.contest_id = problem.contest_id
        if problem.track_id is not None:
            existing.track_id = problem.track_id
        for name in ("name", "difficulty", "tag", "platform", "link"):
            value = getattr(problem, name)
            if value:
                setattr(existing, name, value)
        return self._repository.update(existing)

    def search_problems(
        self, name: str = "", filters: Optional[Mapping[str, Any]] = None
    ) -> list[Problem]:
        return self._repository.search(name, filters)