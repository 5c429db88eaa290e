import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from app.core.ctx import get_request_id
from app.domain.exceptions import AppError, Unauthorized

MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger("app.errors")


def _bearer_challenge(description: str | None) -> str:
    attributes = ['realm="api"', 'error="invalid_token"']
    if description:
        attributes.append(f'error_description="{description}"')
    return "Bearer " + ", ".join(attributes)


def problem_response(
    request: Request,
    *,
    http_status: int,
    title: str,
    detail: str | None = None,
    context: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "status": http_status,
        "title": title,
        "detail": detail,
        "instance": str(request.url),
    }
    trace_id = get_request_id()
    if trace_id:
        body["trace_id"] = trace_id
    if context:
        body["context"] = context
    return JSONResponse(status_code=http_status, content=body, media_type=MEDIA_TYPE, headers=headers)


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        detail = str(exc) or None
        headers = {"WWW-Authenticate": _bearer_challenge(detail)} if isinstance(exc, Unauthorized) else None
        if exc.status_code >= 500:
            logger.error("Request failed: %s", detail, extra={"context": exc.ctx})
        return problem_response(
            request,
            http_status=exc.status_code,
            title=exc.title,
            detail=detail,
            context=exc.ctx,
            headers=headers
        )

    @app.exception_handler(SQLAlchemyError)
    async def _db_error_handler(request: Request, exc: SQLAlchemyError):
        # rollback already happened in get_db; internals stay in the log
        logger.exception("Unhandled persistence error on %s %s", request.method, request.url.path)
        return problem_response(
            request,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            title="Internal Server Error",
            detail="Unexpected persistence failure"
        )
