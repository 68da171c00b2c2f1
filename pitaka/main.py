from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pitaka.api.v1.api import api_router
from pitaka.core.config import settings
from pitaka.core.errors import (
    FinanceError,
    InsufficientFunds,
    NotFound,
    NotYetAvailable,
    StoreWriteFailure,
    ValidationError,
)
from pitaka.core.logging import configure_logging, get_logger
from pitaka.db.session import close_store, open_store

configure_logging()
logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InsufficientFunds: status.HTTP_409_CONFLICT,
    NotYetAvailable: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    StoreWriteFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def startup():
    await open_store()
    logger.info("app_started", environment=settings.ENVIRONMENT, store=settings.STORE_BACKEND)


async def shutdown():
    await close_store()


app.add_event_handler("startup", startup)
app.add_event_handler("shutdown", shutdown)


@app.exception_handler(FinanceError)
async def finance_error_handler(request: Request, exc: FinanceError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    body = {"detail": exc.message, "error": exc.kind}
    if isinstance(exc, InsufficientFunds):
        body["account_name"] = exc.account_name
        body["balance"] = float(exc.balance)
        if exc.max_amount is not None:
            body["max_amount"] = float(exc.max_amount)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_failed",
        method=request.method,
        path=request.url.path,
        error=exc.kind,
        detail=exc.message,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=body)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pitaka.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
