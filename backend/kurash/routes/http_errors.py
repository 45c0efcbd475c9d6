"""Translate bracket engine errors into HTTP responses."""

from fastapi import HTTPException

from kurash.services.errors import (
    BracketDriftError,
    BracketError,
    BracketNotFoundError,
    BracketValidationError,
    ResultStoreError,
)


def to_http_exception(exc: BracketError) -> HTTPException:
    if isinstance(exc, BracketNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, BracketValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, BracketDriftError):
        return HTTPException(status_code=409, detail={"stage_id": exc.stage_id, "message": str(exc)})
    if isinstance(exc, ResultStoreError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
