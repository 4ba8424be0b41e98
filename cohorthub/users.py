"""Storage and operations for hub members."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Iterable

from cohorthub.models import Submission, User
from cohorthub.store import ConflictError, Database, RecordNotFound


class UserRepository:
    """User records with unique e-mail addresses."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _email_taken(self, email: str, except_id: int = 0) -> bool:
        return bool(
            self._db.find(User, lambda user: user.email == email and user.id != except_id)
        )

    def all(self) -> list[User]:
        return self._db.find(User)

    def get_by_id(self, user_id: int) -> User:
        try:
            return self._db.get(User, user_id)
        except RecordNotFound:
            raise RecordNotFound(f"no user found with ID {user_id}") from None

    def create(self, user: User) -> User:
        """Store a user; raise ConflictError if the e-mail is in use."""
        if self._email_taken(user.email):
            raise ConflictError(f"user with email '{user.email}' already exists")
        return self._db.create(replace(user))

    def update(self, user_id: int, updated: User) -> User:
        """Write the non-empty fields of ``updated`` onto the stored user."""
        existing = self.get_by_id(user_id)
        if updated.email != existing.email and self._email_taken(updated.email, user_id):
            raise ConflictError(f"another user with email '{updated.email}' already exists")
        for f in fields(User):
            if f.name == "id":
                continue
            value = getattr(updated, f.name)
            if value:
                setattr(existing, f.name, value)
        self._db.save(existing)
        return replace(updated, id=user_id)

    def delete(self, user_id: int) -> None:
        self._db.delete(self.get_by_id(user_id))

    def create_many(self, users: Iterable[User]) -> list[User]:
        """Store all users at once, or none if any e-mail is in use."""
        pending = [replace(user) for user in users]
        for user in pending:
            if self._email_taken(user.email):
                raise ConflictError(f"user with email '{user.email}' already exists")
        with self._db.transaction():
            return [self._db.create(user) for user in pending]

    def by_group(self, group_id: int) -> list[User]:
        return self._db.find(User, {"group_id": group_id})

    def update_avatar(self, user_ids: Iterable[int], image_url: str) -> None:
        """Set the avatar of every listed user."""
        ids = set(user_ids)
        if not ids:
            raise ValueError("no user IDs provided for avatar update")
        for user in self._db.find(User, lambda user: user.id in ids):
            user.avatar_url = image_url
            self._db.save(user)

    def count_by_country(self, country_id: int) -> int:
        return len(self._db.find(User, {"country_id": country_id}))

    def count_by_country_and_role(self, country_id: int, role: str) -> int:
        return len(self._db.find(User, {"country_id": country_id, "role": role}))

    def submissions(self, user_id: int) -> tuple[list[Submission], float, int]:
        """Return a user's submissions, their count and total time spent."""
        submissions = self._db.find(Submission, {"user_id": user_id})
        total_time = sum(submission.time_spent for submission in submissions)
        return submissions, float(len(submissions)), total_time


class UserService:
    """User operations."""

    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    def _existing(self, user_id: int) -> User:
        user = self._repository.get_by_id(user_id)
        if user.id == 0:
            raise RecordNotFound("user not found")
        return user

    def all_users(self) -> list[User]:
        return self._repository.all()

    def get_user(self, user_id: int) -> User:
        return self._existing(user_id)

    def create_user(self, user: User) -> User:
        return self._repository.create(user)

    def update_user(self, user_id: int, user: User) -> User:
        self._existing(user_id)
        return self._repository.update(user_id, user)

    def delete_user(self, user_id: int) -> None:
        self._existing(user_id)
        self._repository.delete(user_id)

    def create_users(self, users: Iterable[User]) -> list[User]:
        return self._repository.create_many(users)

    def users_by_group(self, group_id: int) -> list[User]:
        return self._repository.by_group(group_id)

    def update_avatar(self, user_id: int, image_url: str) -> None:
        self._repository.update_avatar([user_id], image_url)

    def user_submissions(self, user_id: int) -> tuple[list[Submission], float, int]:
        self._existing(user_id)
        return self._repository.submissions(user_id)