"""Domain errors raised by the access layer and rendered by the API.

Every failure that reaches a client is one of the classes below. Each one
carries the HTTP status, a stable machine-readable ``code`` and a short
Arabic message meant for display. Store and library failures are logged
server-side and surfaced only as :class:`Internal`.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for all errors that cross the API boundary."""

    status_code = 500
    code = "INTERNAL_ERROR"
    message = "خطأ داخلي في الخادم"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.code, **self.details}


class Unauthenticated(DomainError):
    """No session, an expired session, or a session bound to a dead user."""

    status_code = 401
    code = "UNAUTHENTICATED"
    message = "غير مصرح لك بالوصول"


class InvalidCredentials(Unauthenticated):
    """Login failed. Unknown user, inactive user and wrong password look the same."""

    code = "INVALID_CREDENTIALS"
    message = "بيانات الدخول غير صحيحة"


class Forbidden(DomainError):
    """Authenticated, but the role is not on the route's allow-list."""

    status_code = 403
    code = "FORBIDDEN"
    message = "ليس لديك صلاحية للوصول لهذه الميزة"


class SelfDeleteForbidden(Forbidden):
    code = "CANNOT_DELETE_SELF"
    message = "لا يمكنك حذف حسابك الخاص"


class InvalidArgument(DomainError):
    status_code = 400
    code = "INVALID_ARGUMENT"
    message = "بيانات غير صحيحة"


class NotFound(DomainError):
    status_code = 404
    code = "NOT_FOUND"
    message = "العنصر غير موجود"


class Conflict(DomainError):
    status_code = 409
    code = "CONFLICT"
    message = "العنصر موجود مسبقاً"


class UploadRejected(DomainError):
    status_code = 400
    code = "UPLOAD_ERROR"
    message = "خطأ في رفع الملفات."


class Internal(DomainError):
    """Unexpected store or library failure; the detail stays in the server log."""


class Throttled(DomainError):
    status_code = 429
    code = "TOO_MANY_REQUESTS"
    message = "عدد الطلبات المتزامنة كبير جداً، يرجى المحاولة لاحقاً"


class TransformTimeout(DomainError):
    status_code = 504
    code = "TRANSFORM_TIMEOUT"
    message = "انتهت مهلة تجهيز الصفحة"
