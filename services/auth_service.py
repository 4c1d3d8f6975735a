"""
Register / login / OTP flows.

Each flow validates its input, then talks to exactly the collaborators it
needs: the student store and password hasher for register/login, the OTP
registry and mailer for OTP delivery, the OTP registry alone for
verification.
"""

from __future__ import annotations

import logging

from errors import ConflictError, InvalidCredentials, ValidationError
from models import Student
from services.student_store import StudentStore
from utils.mailer import Mailer
from utils.otp_service import OtpRegistry
from utils.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your OTP Code"


def _present(*values) -> bool:
    return all(isinstance(v, str) and v for v in values)


class AuthService:
    def __init__(self, *, store: StudentStore, otp_registry: OtpRegistry, mailer: Mailer):
        self.store = store
        self.otp_registry = otp_registry
        self.mailer = mailer

    def register(self, username, password, email) -> Student:
        if not _present(username, password, email):
            raise ValidationError("All fields required")

        if self.store.find_by_username(username):
            raise ConflictError("username")

        student = self.store.create(
            username=username,
            password_hash=hash_password(password),
            email=email,
        )
        logger.info("Registered student '%s' (id=%s)", username, student.id)
        return student

    def login(self, username, password) -> Student:
        if not _present(username, password):
            raise ValidationError("Username and password required")

        student = self.store.find_by_username(username)
        if student is None or not verify_password(password, student.password):
            raise InvalidCredentials()

        logger.info("User '%s' logged in successfully.", username)
        return student

    def send_otp(self, email) -> str:
        """Issue a code for `email` and mail it. The code stays pending if delivery fails."""
        if not _present(email):
            raise ValidationError("Email is required")

        code = self.otp_registry.issue(email)
        self.mailer.send(email, OTP_SUBJECT, f"Your OTP is: {code}")
        return code

    def verify_otp(self, email, code) -> bool:
        return self.otp_registry.verify(email, code)
