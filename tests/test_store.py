import pytest

from cohorthub.models import Country, Group, Role, Submission, Track, User
from cohorthub.store import ConflictError, Database, RecordNotFound, migrate_models


@pytest.fixture
def db():
    database = Database()
    migrate_models(database)
    return database


def test_migrate_creates_empty_tables(db):
    for model in (User, Country, Group, Role, Submission, Track):
        assert db.find(model) == []


def test_create_assigns_increasing_ids(db):
    first = db.create(Role(type="student"))
    second = db.create(Role(type="head"))
    assert second.id > first.id > 0


def test_create_stamps_times(db):
    role = db.create(Role(type="student"))
    assert role.created_at is not None
    assert db.get(Role, role.id).created_at == role.created_at


def test_duplicate_explicit_id_conflicts(db):
    db.create(Country(id=5, name="Ghana", short_code="GH"))
    with pytest.raises(ConflictError):
        db.create(Country(id=5, name="Kenya", short_code="KE"))


def test_get_returns_copy(db):
    country = db.create(Country(name="Ghana", short_code="GH"))
    fetched = db.get(Country, country.id)
    fetched.name = "Changed"
    assert db.get(Country, country.id).name == "Ghana"


def test_get_missing_raises(db):
    with pytest.raises(RecordNotFound, match="record not found"):
        db.get(Country, 99)


def test_first_with_mapping_and_callable(db):
    db.create(User(email="a@example.com", country_id=1))
    db.create(User(email="b@example.com", country_id=2))
    assert db.first(User, {"country_id": 2}).email == "b@example.com"
    assert db.first(User, lambda u: u.email.startswith("a")).country_id == 1


def test_first_missing_raises(db):
    with pytest.raises(RecordNotFound):
        db.first(User, {"email": "none@example.com"})


def test_find_orders_by_id(db):
    for name in ("c", "a", "b"):
        db.create(Track(name=name))
    assert [t.name for t in db.find(Track)] == ["c", "a", "b"]


def test_save_replaces_and_creates(db):
    role = db.create(Role(type="student"))
    role.type = "mentor"
    db.save(role)
    assert db.get(Role, role.id).type == "mentor"
    created = db.save(Role(type="new"))
    assert db.get(Role, created.id).type == "new"


def test_delete_reports_removal(db):
    role = db.create(Role(type="student"))
    assert db.delete(role) is True
    assert db.delete(role) is False
    with pytest.raises(RecordNotFound):
        db.get(Role, role.id)


def test_transaction_rolls_back_on_error(db):
    db.create(Role(type="kept"))
    with pytest.raises(RuntimeError):
        with db.transaction():
            db.create(Role(type="dropped"))
            raise RuntimeError("boom")
    assert [r.type for r in db.find(Role)] == ["kept"]


def test_transaction_commits(db):
    with db.transaction() as tx:
        tx.create(Role(type="kept"))
    assert len(db.find(Role)) == 1


def test_unregistered_model_raises():
    with pytest.raises(KeyError):
        Database().create(Role(type="student"))


def test_register_rejects_non_dataclass():
    with pytest.raises(TypeError):
        Database().register(dict)


def test_register_twice_keeps_rows(db):
    db.create(Role(type="student"))
    db.register(Role)
    assert len(db.find(Role)) == 1