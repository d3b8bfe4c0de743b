import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import validation_failure
from app.controllers import database_controller
from app.schemas.database_schema import ErrorResponse

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(title=settings.APP_TITLE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.SESSION_HEADER],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Reject malformed request bodies with a typed MissingField/WrongType error
    before anything reaches the executor.
    """
    failure = validation_failure(list(exc.errors()))
    logger.info(f"[validation] {request.url.path}: {failure.code} on '{failure.field}'")
    body = ErrorResponse(error=failure.message, code=failure.code, field=failure.field)
    return JSONResponse(status_code=422, content=body.model_dump(by_alias=True))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    body = ErrorResponse(error=str(exc) or exc.__class__.__name__, code="InternalError")
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))


# Include routers
app.include_router(database_controller.router)


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": settings.APP_TITLE,
        "docs": "/docs",
        "version": "1.0"
    }


def main():
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
