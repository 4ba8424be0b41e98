"""Record types stored by the hub."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Country:
    """A country that users and groups belong to."""

    id: int = 0
    name: str = ""
    short_code: str = ""


@dataclass
class Role:
    """A user role such as student or head of education."""

    id: int = 0
    type: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class User:
    """A member of the hub."""

    id: int = 0
    name: str = ""
    email: str = ""
    role: str = ""
    role_id: Optional[int] = None
    group_id: Optional[int] = None
    country_id: Optional[int] = None
    codeforces: str = ""
    leetcode: str = ""
    github: str = ""
    avatar_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Group:
    """A group of students, optionally led by a head of academy."""

    id: int = 0
    name: str = ""
    short_name: str = ""
    description: str = ""
    hoa_id: Optional[int] = None
    country_id: int = 0
    country: Optional[Country] = None


@dataclass
class SuperGroup:
    """A collection of groups that share contests and tracks."""

    id: int = 0
    name: str = ""


@dataclass
class SuperToGroup:
    """Link between a super group and a group."""

    id: int = 0
    super_group_id: int = 0
    group_id: int = 0


@dataclass
class Track:
    """A learning track inside a super group."""

    id: int = 0
    name: str = ""
    super_group_id: int = 0
    active: bool = False


@dataclass
class Problem:
    """A practice problem hosted on some judge platform."""

    id: int = 0
    name: str = ""
    difficulty: str = ""
    tag: str = ""
    platform: str = ""
    link: str = ""
    contest_id: Optional[int] = None
    track_id: Optional[int] = None


@dataclass
class Submission:
    """A user's solution to a problem."""

    id: int = 0
    problem_id: int = 0
    user_id: int = 0
    code: str = ""
    language: str = ""
    time_spent: int = 0
    verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Rating:
    """A user's result and rating change in one contest."""

    id: int = 0
    contest_id: int = 0
    user_id: int = 0
    rank: int = 0
    penalty: int = 0
    solved: int = 0
    points: int = 0
    gain: int = 0
    user: Optional[User] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Contest:
    """A contest held on the judge, with the ratings it produced."""

    id: int = 0
    name: str = ""
    type: str = ""
    link: str = ""
    super_group_id: int = 0
    problem_count: int = 0
    problems: list[Any] = field(default_factory=list)
    ratings: list[Rating] = field(default_factory=list)
    standings: Any = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ContestStanding:
    """Serialized standings kept for one contest."""

    id: int = 0
    contest_id: int = 0
    data: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None