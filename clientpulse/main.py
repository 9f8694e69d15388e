"""Application entrypoint for the ClientPulse API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clientpulse.api.v1._errors import map_domain_error, request_errors_to_fields
from clientpulse.api.v1.router import get_api_router
from clientpulse.core.config import get_config
from clientpulse.core.exceptions import ClientPulseException
from clientpulse.core.startup import bootstrap

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION)
    app.include_router(get_api_router())

    @app.exception_handler(ClientPulseException)
    def handle_domain_error(request: Request, exc: ClientPulseException) -> JSONResponse:
        status_code, body = map_domain_error(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "api.request_failed",
            extra={
                "event": "api.request_failed",
                "path": request.url.path,
                "status_code": status_code,
                "error_type": type(exc).__name__,
            },
        )
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"status": "error", "errors": request_errors_to_fields(exc.errors())},
        )

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Expose ASGI app for `uvicorn clientpulse.main:app`.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    bootstrap()
    uvicorn.run(app, host="0.0.0.0", port=8000)
