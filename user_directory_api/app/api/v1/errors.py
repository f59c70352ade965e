"""
Translation of service errors into HTTP responses.

Services raise ``DirectoryError`` subclasses and know nothing about
HTTP; endpoints catch them and re‑raise the ``HTTPException`` built
here.
"""

from fastapi import HTTPException, status

from user_directory_api.app.core.errors import BadRequestError, DirectoryError, ErrorKind


STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def http_error(error: DirectoryError) -> HTTPException:
    """Build the ``HTTPException`` for ``error``.

    Validation failures carry their violations in the response body so
    clients can show every problem at once.
    """
    if isinstance(error, BadRequestError) and error.violations:
        detail = {
            "message": error.message,
            "violations": [violation.as_dict() for violation in error.violations],
        }
    else:
        detail = error.message
    return HTTPException(status_code=STATUS_BY_KIND[error.kind], detail=detail)
