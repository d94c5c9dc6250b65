"""
Typed caller-facing failures. Routers let these propagate; the handler
registered in app.main turns them into JSON responses.
"""
from fastapi import status


class DispatchError(Exception):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(DispatchError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidArgument(DispatchError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(DispatchError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class FailedPrecondition(DispatchError):
    code = "failed-precondition"
    status_code = status.HTTP_409_CONFLICT
