# cohorthub

A library for running a programming-training cohort. It keeps users, countries,
groups, super groups, tracks, roles, problems and submissions. It can also fetch
contests and standings from the Codeforces API and give participants Elo-style
ratings.

The package uses only the Python standard library. Every record lives in an
in-memory `Database` from `cohorthub.store`.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Layout

| Module | Purpose |
| --- | --- |
| `cohorthub.models` | Record dataclasses: `User`, `Country`, `Group`, `Role`, `Problem`, `Submission`, `SuperGroup`, `SuperToGroup`, `Track`, `Contest`, `Rating`, `ContestStanding` |
| `cohorthub.store` | `Database` with `register`, `create`, `get`, `first`, `find`, `save`, `delete` and the `transaction()` context manager, plus `migrate_models`, `RecordNotFound` and `ConflictError` |
| `cohorthub.rating` | `title_and_division`, `problem_count_rating`, `calculate_elo`, `rankings_from_standings` |
| `cohorthub.cache` | `CacheRepository`, a thread-safe cache that stores values as JSON bytes |
| `cohorthub.codeforces` | `CodeforcesClient`, `CodeforcesError`, `generate_signature`, `fetch_contests`, `fetch_contests_by_type`, `fetch_rankings_for_contest` |
| `cohorthub.standings` | `Standings` and its row types, `rank_rows`, `StandingsRepository` |
| `cohorthub.contests` | `ContestRepository`, `ContestService`, `Performance`, `contest_id_from_link`, `collect_performances`, `rate_performances` |
| `cohorthub.roles`, `groups`, `supergroups`, `tracks`, `problems`, `submissions`, `users` | One repository class and one service class per entity |
| `cohorthub.countries` | `CountryRepository`, `CountryService`, and the result types `UserStat`, `CountrySummary`, `CountryDetail` |

## Example

```python
from cohorthub.store import Database, migrate_models
from cohorthub.roles import RoleRepository, RoleService
from cohorthub.rating import title_and_division

db = Database()
migrate_models(db)

roles = RoleService(RoleRepository(db))
student = roles.create_role("student")
print([role.type for role in roles.all_roles()])

print(title_and_division(1650))   # ("Knight", 2)
```

Failures are reported as exceptions:

- `RecordNotFound` when a record is missing.
- `ConflictError` when a name, type or e-mail address is already in use.
- `ValueError` when the input is invalid.

`Database` copies records on every read and write, so changing a returned object
has no effect on what is stored until you pass it to `save`.

## Codeforces access

`CodeforcesClient.from_env()` builds a client from the `CODEFORCES_API_KEY` and
`CODEFORCES_API_SECRET` environment variables and signs requests with them. By
default HTTP requests go through `urllib`. To replace that, pass a `fetch`
callable that takes a URL and returns the response body, for example to serve
canned replies in tests:

```python
from cohorthub.codeforces import CodeforcesClient

client = CodeforcesClient(api_key="placeholder", api_secret="secret", fetch=my_fetch)
```

`StandingsRepository.get` returns standings that are already stored. Otherwise
it fetches them from the API, ranks the rows by points and then by penalty, and
stores the result.

## What this package does not do

- Nothing is kept on disk. `Database` holds records in memory only, so all data
  is gone when the process exits.
- It has no HTTP server, no web API and no command-line program. It is a library
  to be called from Python code.
- It does not deal with invitations, e-mail, login tokens, sessions or
  attendance.
- `CacheRepository.set` accepts an expiration but does not enforce it. Entries
  stay until `delete` is called.