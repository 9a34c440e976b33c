"""Problem-style error bodies: ``{"title", "status", "detail"}``."""

from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


def problem_body(status_code: int, detail: str) -> dict:
    try:
        title = HTTPStatus(status_code).phrase
    except ValueError:
        title = "Error"
    return {"title": title, "status": status_code, "detail": detail}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=problem_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )
