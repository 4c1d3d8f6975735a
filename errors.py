from __future__ import annotations


class AuthError(Exception):
    """Base class for failures the auth routes translate into HTTP responses."""


class ValidationError(AuthError):
    pass


class ConflictError(AuthError):
    def __init__(self, field: str):
        super().__init__(f"{field} already exists")
        self.field = field


class InvalidCredentials(AuthError):
    def __init__(self):
        # Same message whichever of username/password was wrong.
        super().__init__("Invalid username or password")


class DispatchError(AuthError):
    pass


class StorageUnavailable(AuthError):
    pass
