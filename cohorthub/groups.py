"""Storage and operations for student groups."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from cohorthub.models import Country, Group
from cohorthub.store import Database, RecordNotFound


class GroupRepository:
    """Group records, returned with their country loaded."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _with_country(self, group: Group) -> Group:
        group.country = None
        if group.country_id:
            try:
                group.country = self._db.get(Country, group.country_id)
            except RecordNotFound:
                pass
        return group

    def create(self, group: Group) -> Group:
        stored = self._db.create(replace(group, country=None))
        group.id = stored.id
        return self.get_by_id(stored.id)

    def get_by_id(self, group_id: int) -> Group:
        return self._with_country(self._db.get(Group, group_id))

    def all(self) -> list[Group]:
        return [self._with_country(group) for group in self._db.find(Group)]

    def update(self, group: Group) -> Group:
        """Replace a stored group; raise RecordNotFound if it is missing."""
        self._db.get(Group, group.id)
        self._db.save(replace(group, country=None))
        return self.get_by_id(group.id)

    def delete(self, group_id: int) -> None:
        self._db.delete(Group(id=group_id))

    def find_by_unique_fields(self, name: str, short_name: str, description: str) -> Group:
        return self._db.first(
            Group, {"name": name, "short_name": short_name, "description": description}
        )


class GroupService:
    """Group operations."""

    def __init__(self, repository: GroupRepository) -> None:
        self._repository = repository

    def all_groups(self) -> list[Group]:
        return self._repository.all()

    def get_group(self, group_id: int) -> Group:
        return self._repository.get_by_id(group_id)

    def create_group(
        self,
        name: str,
        short_name: str,
        description: str,
        hoa_id: Optional[int] = None,
        country_id: int = 0,
    ) -> Group:
        group = Group(
            name=name,
            short_name=short_name,
            description=description,
            hoa_id=hoa_id,
            country_id=country_id,
        )
        return self._repository.create(group)

    def update_group(
        self,
        group_id: int,
        name: str,
        short_name: str,
        description: str,
        hoa_id: Optional[int] = None,
        country_id: int = 0,
    ) -> Group:
        group = Group(
            id=group_id,
            name=name,
            short_name=short_name,
            description=description,
            hoa_id=hoa_id,
            country_id=country_id,
        )
        return self._repository.update(group)

    def delete_group(self, group_id: int) -> None:
        self._repository.delete(group_id)

    def get_group_by_unique_fields(self, name: str, short_name: str, description: str) -> Group:
        return self._repository.find_by_unique_fields(name, short_name, description)