"""Contest standings: wire format, ranking and storage."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from cohorthub.codeforces import CodeforcesClient
from cohorthub.models import Contest, ContestStanding, Rating, SuperToGroup, User
from cohorthub.store import Database, RecordNotFound

_log = logging.getLogger(__name__)

PROFILE_PREFIX = "https://codeforces.com/profile/"


@dataclass
class Member:
    """One participant of a party."""

    handle: str = ""
    id: int = 0


@dataclass
class Party:
    """The participants behind one standings row."""

    members: list[Member] = field(default_factory=list)


@dataclass
class ProblemResult:
    """A party's result on one problem."""

    points: float = 0.0
    rejected_attempt_count: int = 0
    type: str = ""
    best_submission_time_seconds: int = 0


@dataclass
class StandingsRow:
    """One line of the standings table."""

    party: Party = field(default_factory=Party)
    rank: int = 0
    points: float = 0.0
    penalty: int = 0
    problem_results: list[ProblemResult] = field(default_factory=list)


@dataclass
class StandingsContest:
    """The contest the standings belong to."""

    id: int = 0
    name: str = ""
    type: str = ""


@dataclass
class StandingsProblem:
    """A problem of the contest."""

    index: str = ""
    name: str = ""
    tags: list[str] = field(default_factory=list)


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _member(data: Mapping[str, Any]) -> Member:
    return Member(handle=str(data.get("handle") or ""), id=int(data.get("id") or 0))


def _problem_result(data: Mapping[str, Any]) -> ProblemResult:
    return ProblemResult(
        points=float(data.get("points") or 0),
        rejected_attempt_count=int(data.get("rejectedAttemptCount") or 0),
        type=str(data.get("type") or ""),
        best_submission_time_seconds=int(data.get("bestSubmissionTimeSeconds") or 0),
    )


def _row(data: Mapping[str, Any]) -> StandingsRow:
    party = _mapping(data.get("party"))
    return StandingsRow(
        party=Party(members=[_member(_mapping(m)) for m in _items(party.get("members"))]),
        rank=int(data.get("rank") or 0),
        points=float(data.get("points") or 0),
        penalty=int(data.get("penalty") or 0),
        problem_results=[_problem_result(_mapping(r)) for r in _items(data.get("problemResults"))],
    )


def _problem(data: Mapping[str, Any]) -> StandingsProblem:
    return StandingsProblem(
        index=str(data.get("index") or ""),
        name=str(data.get("name") or ""),
        tags=[str(tag) for tag in _items(data.get("tags"))],
    )


@dataclass
class Standings:
    """A standings reply as the judge sends it."""

    status: str = ""
    contest: StandingsContest = field(default_factory=StandingsContest)
    problems: list[StandingsProblem] = field(default_factory=list)
    rows: list[StandingsRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Standings":
        """Build standings from the decoded JSON reply."""
        result = _mapping(data.get("result"))
        contest = _mapping(result.get("contest"))
        return cls(
            status=str(data.get("status") or ""),
            contest=StandingsContest(
                id=int(contest.get("id") or 0),
                name=str(contest.get("name") or ""),
                type=str(contest.get("type") or ""),
            ),
            problems=[_problem(_mapping(p)) for p in _items(result.get("problems"))],
            rows=[_row(_mapping(r)) for r in _items(result.get("rows"))],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the standings in the judge's JSON layout."""
        return {
            "status": self.status,
            "result": {
                "contest": {
                    "id": self.contest.id,
                    "name": self.contest.name,
                    "type": self.contest.type,
                },
                "problems": [
                    {"index": p.index, "name": p.name, "tags": list(p.tags)} for p in self.problems
                ],
                "rows": [
                    {
                        "party": {
                            "members": [
                                {"handle": m.handle, "id": m.id} for m in row.party.members
                            ]
                        },
                        "rank": row.rank,
                        "points": row.points,
                        "penalty": row.penalty,
                        "problemResults": [
                            {
                                "points": r.points,
                                "rejectedAttemptCount": r.rejected_attempt_count,
                                "type": r.type,
                                "bestSubmissionTimeSeconds": r.best_submission_time_seconds,
                            }
                            for r in row.problem_results
                        ],
                    }
                    for row in self.rows
                ],
            },
        }


def rank_rows(rows: Iterable[StandingsRow]) -> list[StandingsRow]:
    """Order rows by points, then lower penalty, and number their ranks from 1."""
    ordered = sorted(rows, key=lambda row: (-row.points, row.penalty))
    for rank, row in enumerate(ordered, start=1):
        row.rank = rank
    return ordered


class StandingsRepository:
    """Standings kept in the database and fetched from the judge on a miss."""

    def __init__(self, db: Database, client: Optional[CodeforcesClient] = None) -> None:
        self._db = db
        self._client = client if client is not None else CodeforcesClient.from_env()

    def save(self, contest_id: int, standings: Standings) -> ContestStanding:
        """Store ``standings`` for ``contest_id``, replacing earlier ones."""
        data = json.dumps(standings.to_dict())
        now = datetime.now()
        try:
            existing = self._db.first(ContestStanding, {"contest_id": contest_id})
        except RecordNotFound:
            record = ContestStanding(contest_id=contest_id, data=data, created_at=now, updated_at=now)
            return self._db.create(record)
        existing.data = data
        existing.updated_at = now
        return self._db.save(existing)

    def _stored(self, contest_id: int) -> Optional[Standings]:
        try:
            record = self._db.first(ContestStanding, {"contest_id": contest_id})
        except RecordNotFound:
            return None
        try:
            return Standings.from_dict(json.loads(record.data))
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            raise ValueError(f"error unmarshaling standings from database: {exc}") from exc

    def _contest(self, contest_id: int) -> Contest:
        try:
            return self._db.get(Contest, contest_id)
        except RecordNotFound as exc:
            raise RecordNotFound(f"error fetching contest: {exc}") from exc

    def get(self, contest_id: int) -> Standings:
        """Return stored standings, or fetch, rank and store them."""
        stored = self._stored(contest_id)
        if stored is not None:
            return stored

        self._client.validate_credentials()
        contest = self._contest(contest_id)

        params = {
            "contestId": str(contest_id),
            "from": "1",
            "count": "10000",
            "showUnofficial": "true",
        }
        if contest.super_group_id:
            try:
                link = self._db.first(SuperToGroup, {"super_group_id": contest.super_group_id})
            except RecordNotFound:
                pass
            else:
                params["groupId"] = str(link.group_id)

        standings = Standings.from_dict(self._client.get("contest.standings", params))
        standings.rows = rank_rows(standings.rows)

        try:
            self.save(contest_id, standings)
        except Exception as exc:  # storing is best effort
            _log.warning("failed to save standings to database: %s", exc)
        return standings

    def contest_standings(self, contest_id: int) -> Standings:
        """Build standings from the ratings stored for a contest."""
        contest = self._contest(contest_id)
        standings = Standings(
            status="OK",
            contest=StandingsContest(id=contest.id, name=contest.name, type=contest.type),
        )
        ratings: list[Rating] = self._db.find(Rating, {"contest_id": contest_id})
        ratings.sort(key=lambda rating: (-rating.points, rating.penalty))
        for position, rating in enumerate(ratings, start=1):
            try:
                user = self._db.get(User, rating.user_id)
            except RecordNotFound:
                continue
            if not user.codeforces:
                continue
            handle = user.codeforces.removeprefix(PROFILE_PREFIX)
            if not handle:
                continue
            standings.rows.append(
                StandingsRow(
                    party=Party(members=[Member(handle=handle, id=rating.user_id)]),
                    rank=position,
                    points=float(rating.points),
                    penalty=rating.penalty,
                )
            )
        return standings

    def fetch_contest_problems(self, contest: Contest) -> None:
        """Load the problems of ``contest`` from the judge into it."""
        data = self._client.get("contest.standings", {"contestId": str(contest.id)})
        problems = [
            {
                "contestId": int(item.get("contestId") or 0),
                "index": str(item.get("index") or ""),
                "name": str(item.get("name") or ""),
                "type": str(item.get("type") or ""),
                "rating": int(item.get("rating") or 0),
                "tags": [str(tag) for tag in _items(item.get("tags"))],
            }
            for item in map(_mapping, _items(_mapping(data.get("result")).get("problems")))
        ]
        contest.problems = problems
        contest.problem_count = len(problems)