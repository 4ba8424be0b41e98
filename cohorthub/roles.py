"""Storage and rules for user roles."""

from __future__ import annotations

from datetime import datetime
from typing import Union

from cohorthub.models import Role
from cohorthub.store import ConflictError, Database, RecordNotFound


class RoleRepository:
    """Role records in a database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def all(self) -> list[Role]:
        return self._db.find(Role)

    def get_by_id(self, role_id: Union[int, str]) -> Role:
        return self._db.get(Role, int(role_id))

    def get_by_type(self, role_type: str) -> Role:
        return self._db.first(Role, {"type": role_type})

    def create(self, role: Role) -> Role:
        return self._db.create(role)

    def update(self, role: Role) -> Role:
        return self._db.save(role)

    def delete(self, role: Role) -> None:
        self._db.delete(role)


class RoleService:
    """Role operations that keep role types unique."""

    def __init__(self, repository: RoleRepository) -> None:
        self._repository = repository

    def all_roles(self) -> list[Role]:
        return self._repository.all()

    def get_role(self, role_id: Union[int, str]) -> Role:
        return self._repository.get_by_id(role_id)

    def _type_taken_by(self, role_type: str) -> Role | None:
        try:
            return self._repository.get_by_type(role_type)
        except RecordNotFound:
            return None

    def create_role(self, role_type: str) -> Role:
        """Create a role; raise ConflictError if the type exists."""
        if self._type_taken_by(role_type) is not None:
            raise ConflictError(f"role with type {role_type} already exists")
        return self._repository.create(Role(type=role_type))

    def update_role(self, role_type: str, role_id: Union[int, str]) -> Role:
        """Rename a role's type unless another role already has it."""
        existing = self._repository.get_by_id(role_id)
        other = self._type_taken_by(role_type)
        if other is not None and other.id != existing.id:
            raise ConflictError(f"role with type {role_type} already exists")
        existing.type = role_type
        existing.updated_at = datetime.now()
        return self._repository.update(existing)

    def delete_role(self, role_id: Union[int, str]) -> None:
        self._repository.delete(self._repository.get_by_id(role_id))