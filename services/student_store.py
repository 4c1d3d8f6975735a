from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from errors import ConflictError, StorageUnavailable
from models import Student

logger = logging.getLogger(__name__)


class StudentStore:
    """Credential store over the `students` table."""

    def __init__(self, db: Session):
        self.db = db

    def _find_by_username(self, username: str) -> Optional[Student]:
        return self.db.query(Student).filter(Student.username == username).first()

    def _find_by_email(self, email: str) -> Optional[Student]:
        return self.db.query(Student).filter(Student.email == email).first()

    def find_by_username(self, username: str) -> Optional[Student]:
        try:
            return self._find_by_username(username)
        except OperationalError as e:
            raise StorageUnavailable(str(e)) from e

    def create(self, *, username: str, password_hash: str, email: str) -> Student:
        try:
            if self._find_by_username(username):
                raise ConflictError("username")
            if self._find_by_email(email):
                raise ConflictError("email")

            student = Student(username=username, password=password_hash, email=email)
            self.db.add(student)
            try:
                self.db.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent insert; work out which key collided.
                self.db.rollback()
                field = "email" if self._find_by_email(email) else "username"
                logger.warning("Unique constraint hit on %s during insert", field)
                raise ConflictError(field) from e
            self.db.refresh(student)
            return student
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(str(e)) from e
