"""Storage and validation rules for submissions."""

from __future__ import annotations

from dataclasses import replace

from cohorthub.models import Submission
from cohorthub.store import Database, RecordNotFound


class SubmissionRepository:
    """Submission records in a database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, submission: Submission) -> Submission:
        return self._db.create(replace(submission))

    def get_by_id(self, submission_id: int) -> Submission:
        try:
            return self._db.get(Submission, submission_id)
        except RecordNotFound:
            raise RecordNotFound("submission not found") from None

    def by_problem(self, problem_id: int) -> list[Submission]:
        """Return a problem's submissions; raise RecordNotFound if there are none."""
        submissions = self._db.find(Submission, {"problem_id": problem_id})
        if not submissions:
            raise RecordNotFound("no submissions found for the given problem")
        return submissions

    def update(self, submission: Submission) -> Submission:
        self.get_by_id(submission.id)
        return self._db.save(replace(submission))

    def delete(self, submission_id: int) -> None:
        self._db.delete(self.get_by_id(submission_id))


class SubmissionService:
    """Submission operations with input validation."""

    def __init__(self, repository: SubmissionRepository) -> None:
        self._repository = repository

    def create_submission(self, submission: Submission) -> Submission:
        """Validate and store a submission to a problem already submitted to."""
        if submission.problem_id == 0:
            raise ValueError("problem ID cannot be zero")
        if submission.user_id == 0:
            raise ValueError("user ID cannot be zero")
        if not submission.code:
            raise ValueError("submission code cannot be empty")
        try:
            self._repository.by_problem(submission.problem_id)
        except RecordNotFound:
            raise ValueError("invalid problem ID: problem does not exist") from None
        return self._repository.create(submission)

    def get_submission(self, submission_id: int) -> Submission:
        if submission_id == 0:
            raise ValueError("submission ID cannot be zero")
        return self._repository.get_by_id(submission_id)

    def submissions_by_problem(self, problem_id: int) -> list[Submission]:
        if problem_id == 0:
            raise ValueError("problem ID cannot be zero")
        return self._repository.by_problem(problem_id)

    def update_submission(self, submission: Submission) -> Submission:
        if submission.id == 0:
            raise ValueError("submission ID cannot be zero")
        if not submission.code:
            raise ValueError("submission code cannot be empty")
        self._repository.get_by_id(submission.id)
        return self._repository.update(submission)

    def delete_submission(self, submission_id: int) -> None:
        if submission_id == 0:
            raise ValueError("submission ID cannot be zero")
        self._repository.get_by_id(submission_id)
        self._repository.delete(submission_id)