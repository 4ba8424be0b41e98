"""Storage and operations for super groups."""

from __future__ import annotations

from cohorthub.models import SuperGroup
from cohorthub.store import ConflictError, Database, RecordNotFound


class SuperGroupRepository:
    """Super group records with unique names."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _name_taken(self, name: str) -> bool:
        try:
            self._db.first(SuperGroup, {"name": name})
        except RecordNotFound:
            return False
        return True

    def create(self, name: str) -> SuperGroup:
        """Create a super group; raise ConflictError if the name exists."""
        if self._name_taken(name):
            raise ConflictError(f"super group with name '{name}' already exists")
        return self._db.create(SuperGroup(name=name))

    def find_by_id(self, super_group_id: int) -> SuperGroup:
        try:
            return self._db.get(SuperGroup, super_group_id)
        except RecordNotFound:
            raise RecordNotFound(f"no super group found with ID {super_group_id}") from None

    def delete(self, super_group_id: int) -> None:
        self._db.delete(self.find_by_id(super_group_id))

    def find_by_name(self, name: str) -> list[SuperGroup]:
        """Return super groups named ``name``; raise RecordNotFound if none."""
        groups = self._db.find(SuperGroup, {"name": name})
        if not groups:
            raise RecordNotFound(f"no super groups found with name '{name}'")
        return groups

    def all(self) -> list[SuperGroup]:
        return self._db.find(SuperGroup)

    def update(self, name: str, super_group_id: int) -> SuperGroup:
        """Rename a super group unless any super group already has ``name``."""
        group = self.find_by_id(super_group_id)
        if self._name_taken(name):
            raise ConflictError(f"super group with name '{name}' already exists")
        group.name = name
        return self._db.save(group)


class SuperGroupService:
    """Super group operations."""

    def __init__(self, repository: SuperGroupRepository) -> None:
        self._repository = repository

    def _existing(self, super_group_id: int) -> SuperGroup:
        group = self._repository.find_by_id(super_group_id)
        if group.id == 0:
            raise RecordNotFound("super group not found")
        return group

    def create_super_group(self, name: str) -> SuperGroup:
        return self._repository.create(name)

    def delete_super_group(self, super_group_id: int) -> None:
        self._existing(super_group_id)
        self._repository.delete(super_group_id)

    def find_super_group_by_id(self, super_group_id: int) -> SuperGroup:
        return self._repository.find_by_id(super_group_id)

    def find_super_groups_by_name(self, name: str) -> list[SuperGroup]:
        return self._repository.find_by_name(name)

    def all_super_groups(self) -> list[SuperGroup]:
        return self._repository.all()

    def update_super_group(self, name: str, super_group_id: int) -> SuperGroup:
        self._existing(super_group_id)
        return self._repository.update(name, super_group_id)