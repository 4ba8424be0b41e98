import pytest

from cohorthub.models import SuperGroup
from cohorthub.store import ConflictError, Database, RecordNotFound, migrate_models
from cohorthub.supergroups import SuperGroupRepository, SuperGroupService


@pytest.fixture
def service():
    db = Database()
    migrate_models(db)
    return SuperGroupService(SuperGroupRepository(db))


def test_create_and_find_by_id(service):
    created = service.create_super_group("Generation 5")
    assert service.find_super_group_by_id(created.id) == created
    assert created.name == "Generation 5"


def test_create_duplicate_name_conflicts(service):
    service.create_super_group("Generation 5")
    with pytest.raises(ConflictError, match="super group with name 'Generation 5' already exists"):
        service.create_super_group("Generation 5")


def test_all_super_groups(service):
    first = service.create_super_group("One")
    second = service.create_super_group("Two")
    assert service.all_super_groups() == [first, second]


def test_find_by_name(service):
    created = service.create_super_group("One")
    service.create_super_group("Two")
    assert service.find_super_groups_by_name("One") == [created]


def test_find_by_name_missing(service):
    with pytest.raises(RecordNotFound, match="no super groups found with name 'Ghost'"):
        service.find_super_groups_by_name("Ghost")


def test_find_by_id_missing(service):
    with pytest.raises(RecordNotFound, match="no super group found with ID 7"):
        service.find_super_group_by_id(7)


def test_update_renames(service):
    created = service.create_super_group("Old")
    updated = service.update_super_group("New", created.id)
    assert updated == SuperGroup(id=created.id, name="New")
    assert service.find_super_group_by_id(created.id).name == "New"


def test_update_to_taken_name_conflicts(service):
    service.create_super_group("Taken")
    other = service.create_super_group("Other")
    with pytest.raises(ConflictError):
        service.update_super_group("Taken", other.id)
    assert service.find_super_group_by_id(other.id).name == "Other"


def test_update_to_own_name_conflicts(service):
    created = service.create_super_group("Same")
    with pytest.raises(ConflictError):
        service.update_super_group("Same", created.id)


def test_update_missing(service):
    with pytest.raises(RecordNotFound, match="no super group found with ID 3"):
        service.update_super_group("Any", 3)


def test_delete_removes(service):
    created = service.create_super_group("Gone")
    service.delete_super_group(created.id)
    assert service.all_super_groups() == []
    with pytest.raises(RecordNotFound):
        service.find_super_group_by_id(created.id)


def test_delete_missing(service):
    with pytest.raises(RecordNotFound, match="no super group found with ID 9"):
        service.delete_super_group(9)


def test_repository_delete_missing():
    db = Database()
    migrate_models(db)
    repo = SuperGroupRepository(db)
    with pytest.raises(RecordNotFound):
        repo.delete(1)