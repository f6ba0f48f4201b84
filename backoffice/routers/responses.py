from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..core.errors import STATUS_BY_ERROR, MutationResult


def respond(result: MutationResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render a MutationResult, choosing the HTTP status from its error kind."""
    if result.success:
        code = success_status
    else:
        code = STATUS_BY_ERROR.get(result.error, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=jsonable_encoder(result.to_dict()))
