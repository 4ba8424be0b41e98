import json

import pytest

from cohorthub.cache import CacheRepository
from cohorthub.codeforces import CodeforcesClient, CodeforcesError
from cohorthub.contests import (
    ContestRepository,
    ContestService,
    Performance,
    collect_performances,
    contest_id_from_link,
    rate_performances,
)
from cohorthub.models import Contest, Rating, User
from cohorthub.standings import (
    Member,
    Party,
    ProblemResult,
    Standings,
    StandingsContest,
    StandingsRepository,
    StandingsRow,
)
from cohorthub.store import Database, RecordNotFound, migrate_models

PAYLOAD = {
    "status": "OK",
    "result": {
        "contest": {"id": 1500, "name": "Round", "type": "ICPC"},
        "problems": [],
        "rows": [
            {
                "party": {"members": [{"handle": "bob", "id": 0}]},
                "points": 1,
                "penalty": 0,
                "problemResults": [
                    {"points": 1, "rejectedAttemptCount": 0},
                    {"points": 0, "rejectedAttemptCount": 3},
                ],
            },
            {
                "party": {"members": [{"handle": "alice", "id": 0}]},
                "points": 2,
                "penalty": 0,
                "problemResults": [
                    {"points": 1, "rejectedAttemptCount": 1},
                    {"points": 1, "rejectedAttemptCount": 0},
                ],
            },
            {
                "party": {"members": [{"handle": "carol", "id": 0}]},
                "points": 1,
                "penalty": 0,
                "problemResults": [{"points": 1, "rejectedAttemptCount": 0}],
            },
        ],
    },
}


@pytest.fixture
def db():
    database = Database()
    migrate_models(database)
    database.create(
        User(name="Alice", email="alice@example.com", codeforces="https://codeforces.com/profile/alice")
    )
    database.create(
        User(name="Bob", email="bob@example.com", codeforces="https://codeforces.com/profile/bob")
    )
    database.create(User(name="Dave", email="dave@example.com"))
    return database


def make_repo(db, api_key="placeholder"):
    client = CodeforcesClient(
        api_key=api_key, api_secret="secret", fetch=lambda url: json.dumps(PAYLOAD)
    )
    return ContestRepository(db, StandingsRepository(db, client))


def row(handle, member_id=0, results=()):
    return StandingsRow(
        party=Party(members=[Member(handle=handle, id=member_id)]),
        problem_results=[ProblemResult(points=p, rejected_attempt_count=r) for p, r in results],
    )


def test_contest_id_from_regular_link():
    assert contest_id_from_link("https://codeforces.com/contest/1234") == 1234


def test_contest_id_from_gym_link():
    assert contest_id_from_link("https://codeforces.com/gym/100001") == 100001


def test_contest_id_from_group_link():
    assert contest_id_from_link("https://codeforces.com/group/abc/contest/555") == 555


@pytest.mark.parametrize(
    "link",
    [
        "https://example.com/problems",
        "https://codeforces.com/group/abc/contest/xyz",
        "https://example.com/contest/12",
        "https://example.com/gym/12",
    ],
)
def test_contest_id_from_bad_link(link):
    with pytest.raises(ValueError):
        contest_id_from_link(link)


def test_collect_performances_skips_unknown_and_empty():
    rows = [
        row("ghost", results=[(1, 0)]),
        StandingsRow(),
        row("alice", results=[(1, 0)]),
    ]
    perfs = collect_performances(rows, {"alice": 7})
    assert [(p.user_id, p.handle, p.solved, p.penalty, p.score) for p in perfs] == [
        (7, "alice", 1, 0, 100.0)
    ]


def test_collect_performances_orders_by_score():
    rows = [row("bob", results=[(1, 0)]), row("alice", results=[(1, 0), (1, 0)])]
    perfs = collect_performances(rows, {"alice": 1, "bob": 2})
    assert [p.handle for p in perfs] == ["alice", "bob"]
    assert perfs[0].score > perfs[1].score


def test_collect_performances_ignores_rejections_on_unsolved():
    perfs = collect_performances([row("bob", results=[(0, 5), (1, 0)])], {"bob": 2})
    assert perfs[0].penalty == 0
    assert perfs[0].solved == 1


def test_rate_single_full_score():
    rated = rate_performances([Performance(user_id=3, solved=1, score=100.0)])
    assert (rated[0].rank, rated[0].gain, rated[0].rating) == (1, 0, 1400)


def test_rate_assigns_ranks_and_consistent_ratings():
    perfs = [Performance(user_id=1, score=200.0), Performance(user_id=2, score=100.0)]
    rated = rate_performances(perfs)
    assert [p.rank for p in rated] == [1, 2]
    assert all(p.rating == 1400 + p.gain for p in rated)
    assert [p.user_id for p in rated] == [1, 2]


def test_save_contest_creates_ratings(db):
    repo = make_repo(db)
    repo.save_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    assert db.get(Contest, 1500).name == "Round"
    ratings = repo.all_ratings(1500)
    assert [(r.user_id, r.rank) for r in ratings] == [(1, 1), (2, 2)]
    assert [r.solved for r in ratings] == [2, 1]
    assert [r.penalty for r in ratings] == [10, 0]
    assert all(r.points == 1400 + r.gain for r in ratings)


def test_save_contest_bad_link_stores_nothing(db):
    repo = make_repo(db)
    with pytest.raises(ValueError):
        repo.save_contest(Contest(link="https://example.com/nothing"))
    assert db.find(Contest) == []


def test_save_contest_without_credentials(db):
    repo = make_repo(db, api_key="")
    with pytest.raises(CodeforcesError):
        repo.save_contest(Contest(link="https://codeforces.com/contest/1500"))
    assert db.get(Contest, 1500).id == 1500
    assert repo.all_ratings(1500) == []


def test_get_by_id_recomputes_in_memory_only(db):
    repo = make_repo(db)
    repo.save_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    saved = {r.user_id: r.points for r in repo.all_ratings(1500)}
    repo.update_rating(1500, 1, 1)
    contest = repo.get_by_id(1500)
    assert {r.user_id: r.points for r in contest.ratings} == saved
    assert contest.standings.contest.id == 1500
    assert {r.user_id: r.points for r in repo.all_ratings(1500)}[1] == 1


def test_get_by_id_missing(db):
    with pytest.raises(RecordNotFound):
        make_repo(db).get_by_id(42)


def test_all_contests_sorted_and_persisted(db):
    repo = make_repo(db)
    repo.save_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    repo.save_contest(Contest(name="Gym", link="https://codeforces.com/gym/100001"))
    saved = {r.user_id: r.points for r in repo.all_ratings(1500)}
    repo.update_rating(1500, 1, 1)
    contests = repo.all_contests()
    assert [c.id for c in contests] == [100001, 1500]
    assert {r.user_id: r.points for r in repo.all_ratings(1500)} == saved


def test_contest_standings_from_ratings(db):
    repo = make_repo(db)
    repo.save_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    standings = repo.contest_standings(1500)
    assert {r.party.members[0].handle for r in standings.rows} == {"alice", "bob"}
    points = [r.points for r in standings.rows]
    assert points == sorted(points, reverse=True)
    assert [r.rank for r in standings.rows] == [1, 2]


def test_update_rating(db):
    repo = make_repo(db)
    db.create(Rating(contest_id=9, user_id=1, points=1400))
    repo.update_rating(9, 1, 1555)
    assert [r.points for r in repo.all_ratings(9)] == [1555]


def test_service_update_ratings(db):
    repo = make_repo(db)
    db.create(Rating(contest_id=7, user_id=1, points=1400))
    db.create(Rating(contest_id=7, user_id=2, points=1400))
    standings = Standings(status="OK", rows=[row("alice", 1), row("bob", 2)])
    ContestService(repo, CacheRepository()).update_ratings(7, standings)
    points = {r.user_id: r.points for r in repo.all_ratings(7)}
    assert points[1] > 1400
    assert points[2] == 1400


def test_service_save_and_clear_standings_cache(db):
    repo = make_repo(db)
    cache = CacheRepository()
    service = ContestService(repo, cache)
    service.add_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    standings = Standings(
        status="OK",
        contest=StandingsContest(id=1500, name="Round", type="ICPC"),
        rows=[row("alice", 1, [(1.0, 0)])],
    )
    service.save_standings(1500, standings)
    assert json.loads(cache.get("standings:1500")) == standings.to_dict()
    assert service.get_standings(1500) == standings
    service.clear_standings_cache(1500)
    assert cache.get("standings:1500") is None


def test_service_save_standings_missing_contest(db):
    service = ContestService(make_repo(db), CacheRepository())
    with pytest.raises(RecordNotFound):
        service.save_standings(999, Standings())


def test_service_get_contest_and_all(db):
    service = ContestService(make_repo(db), CacheRepository())
    added = service.add_contest(Contest(name="Round", link="https://codeforces.com/contest/1500"))
    assert added.id == 1500
    assert service.get_contest(1500).name == "Round"
    assert [c.id for c in service.all_contests()] == [1500]