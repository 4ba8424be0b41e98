"""Storage and validation rules for learning tracks."""

from __future__ import annotations

from dataclasses import replace

from cohorthub.models import Track
from cohorthub.store import ConflictError, Database, RecordNotFound


class TrackRepository:
    """Track records, unique by name within a super group."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, track: Track) -> Track:
        """Store a track; raise ConflictError if its super group has one of that name."""
        try:
            self._db.first(Track, {"name": track.name, "super_group_id": track.super_group_id})
        except RecordNotFound:
            return self._db.create(replace(track))
        raise ConflictError(f"track with name '{track.name}' already exists in the super group")

    def all(self) -> list[Track]:
        return self._db.find(Track)

    def find_by_id(self, track_id: int) -> Track:
        try:
            return self._db.get(Track, track_id)
        except RecordNotFound:
            raise RecordNotFound(f"track with ID {track_id} not found") from None

    def find_by_name(self, name: str) -> list[Track]:
        return self._db.find(Track, {"name": name})

    def update(self, track: Track) -> Track:
        """Copy name, super group and active flag onto the stored track."""
        existing = self.find_by_id(track.id)
        existing.name = track.name
        existing.super_group_id = track.super_group_id
        existing.active = track.active
        return self._db.save(existing)

    def delete(self, track_id: int) -> None:
        self._db.delete(self.find_by_id(track_id))


class TrackService:
    """Track operations with input validation."""

    def __init__(self, repository: TrackRepository) -> None:
        self._repository = repository

    def _existing(self, track_id: int) -> Track:
        track = self._repository.find_by_id(track_id)
        if track.id == 0:
            raise RecordNotFound("track not found")
        return track

    def create_track(self, track: Track) -> Track:
        """Validate and store a new track."""
        if not track.name:
            raise ValueError("track name cannot be empty")
        if track.super_group_id == 0:
            raise ValueError("super group ID cannot be zero")
        if any(
            existing.super_group_id == track.super_group_id
            for existing in self._repository.find_by_name(track.name)
        ):
            raise ConflictError("track with the same name already exists in the super group")
        return self._repository.create(track)

    def delete_track(self, track_id: int) -> None:
        self._existing(track_id)
        self._repository.delete(track_id)

    def find_track_by_id(self, track_id: int) -> Track:
        return self._repository.find_by_id(track_id)

    def find_tracks_by_name(self, name: str) -> list[Track]:
        return self._repository.find_by_name(name)

    def all_tracks(self) -> list[Track]:
        return self._repository.all()

    def update_track(self, track: Track) -> Track:
        self._existing(track.id)
        return self._repository.update(track)