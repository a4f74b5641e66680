# ocifsync/responses.py
"""
Failure responses shared by the request-side validators.
"""

from collections.abc import Mapping
from typing import Any

from .models import ErrorResponse, FailureBody

INVALID_DATA_TITLE: str = 'Invalid Data Error'
NO_DATA_REQUESTED: str = 'no data was requested, atleast one must be true'
REQUEST_FLAG_PREFIX: str = 'request'


def map_failure_response(status_code: int, title: str, detail: str) -> ErrorResponse:
    """
    Build a {statusCode, body} failure.

    Example:
        >>> map_failure_response(400, 'Invalid Data Error', 'bad').model_dump(by_alias=True)
        {'statusCode': 400, 'body': {'type': 'Failure', 'title': 'Invalid Data Error', 'status': 400, 'detail': 'bad'}}
    """
    return ErrorResponse(
        status_code=status_code,
        body=FailureBody(type='Failure', title=title, status=status_code, detail=detail),
    )


def map_record_not_found_response() -> ErrorResponse:
    """404 failure returned when OCIF holds no tax record for the party."""
    return ErrorResponse(
        status_code=404,
        body=FailureBody(
            type='failure',
            title='no record found',
            status=404,
            detail='the request tax record was not found',
        ),
    )


def validate_request_control(payload: Mapping[str, Any] | None) -> ErrorResponse | None:
    """
    Check that a request asks for at least one kind of data.

    Args:
        payload: Request control flags such as {'requestForeignIndicia': True}.

    Returns:
        None when at least one 'request*' flag is True, otherwise a 400
        Invalid Data Error failure.
    """
    flags: Mapping[str, Any] = payload or {}
    if any(
        value is True
        for key, value in flags.items()
        if key.startswith(REQUEST_FLAG_PREFIX)
    ):
        return None

    return map_failure_response(400, INVALID_DATA_TITLE, NO_DATA_REQUESTED)
