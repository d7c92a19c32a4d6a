import asyncio
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .cors import cors_middleware
from .errors import ErrorKind, Outcome, error_response
from .logging_utils import iso_now, logger, logging_middleware
from .metrics import inc_chat_operation, render_metrics
from .models import DeleteResponse, ErrorResponse, Message
from .service import MessageService
from .storage import MessageStore


router = APIRouter()

# read routes answer HEAD as well, like GET
READ_METHODS = ["GET", "HEAD"]


# ---------- Startup ----------


async def check_connection(store: MessageStore) -> None:
    try:
        await store.ping()
    except Exception:
        # keep serving; requests fail with 500 until the store is back
        logger.exception("MongoDB connection error")
        return
    logger.info("MongoDB connected")


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = app.state.store is None
    if owned:
        try:
            app.state.store = MessageStore.from_settings(settings)
        except PyMongoError:
            logger.exception("could not create MongoDB client")

    check: Optional[asyncio.Task] = None
    if app.state.store is not None:
        check = asyncio.create_task(check_connection(app.state.store))

    logger.info("Chat API running on port %s", settings.PORT)
    try:
        yield
    finally:
        if check is not None and not check.done():
            check.cancel()
        if owned and app.state.store is not None:
            app.state.store.close()


# ---------- Helpers ----------


def get_service(request: Request) -> MessageService:
    return MessageService(request.app.state.store)


def respond(request: Request, operation: str, outcome: Outcome, **extra: Any) -> Any:
    inc_chat_operation(operation, outcome.result)

    log_extra = getattr(request.state, "log_extra", None)
    if isinstance(log_extra, dict):
        log_extra.update({"operation": operation, "result": outcome.result, **extra})

    if not outcome.ok:
        return error_response(outcome.error)
    return outcome.value


# ---------- Exception handler for unmatched routes ----------


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 405 means the path exists but not for this verb; both count as no route
    if exc.status_code in (404, 405):
        logger.info("404 - Route not found: %s %s", request.method, request.url.path)
        return error_response(ErrorKind.ROUTE_NOT_FOUND)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ---------- Endpoints ----------


@router.api_route("/", methods=READ_METHODS)
def root():
    return {
        "message": "Chat API is running!",
        "cors": "enabled",
        "timestamp": iso_now(),
    }


@router.api_route("/cors-test", methods=READ_METHODS)
def cors_test(request: Request):
    return {
        "message": "CORS is working!",
        "origin": request.headers.get("origin", "no-origin"),
        "method": request.method,
    }


@router.api_route("/health/live", methods=READ_METHODS)
def health_live():
    return {"status": "ok"}


@router.api_route("/health/ready", methods=READ_METHODS)
async def health_ready(request: Request):
    store: Optional[MessageStore] = request.app.state.store
    if store is None:
        raise HTTPException(status_code=503, detail="store not configured")
    try:
        await store.ping()
    except Exception:
        logger.exception("readiness ping failed")
        raise HTTPException(status_code=503, detail="DB error")
    return {"status": "ok"}


@router.api_route("/metrics", methods=READ_METHODS)
def metrics():
    return PlainTextResponse(content=render_metrics(), media_type="text/plain")


@router.post(
    "/chat",
    status_code=201,
    response_model=Message,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_message(request: Request, service: MessageService = Depends(get_service)):
    raw_body = await request.body()
    outcome = await service.create(raw_body)
    extra = {"message_id": outcome.value.id} if outcome.ok else {}
    return respond(request, "create", outcome, **extra)


@router.api_route(
    "/chat",
    methods=READ_METHODS,
    response_model=List[Message],
    responses={500: {"model": ErrorResponse}},
)
async def list_messages(request: Request, service: MessageService = Depends(get_service)):
    outcome = await service.list_all()
    extra = {"count": len(outcome.value)} if outcome.ok else {}
    return respond(request, "list", outcome, **extra)


@router.api_route(
    "/chat/id/{message_id}",
    methods=READ_METHODS,
    response_model=Message,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_message(
    message_id: str, request: Request, service: MessageService = Depends(get_service)
):
    outcome = await service.get(message_id)
    return respond(request, "get", outcome, message_id=message_id)


@router.api_route(
    "/chat/{user:path}",
    methods=READ_METHODS,
    response_model=List[Message],
    responses={500: {"model": ErrorResponse}},
)
async def list_user_messages(
    user: str, request: Request, service: MessageService = Depends(get_service)
):
    outcome = await service.list_for_user(user)
    extra = {"count": len(outcome.value)} if outcome.ok else {}
    return respond(request, "list_user", outcome, user=user, **extra)


@router.delete(
    "/chat/{message_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def delete_message(
    message_id: str, request: Request, service: MessageService = Depends(get_service)
):
    outcome = await service.delete(message_id)
    return respond(request, "delete", outcome, message_id=message_id)


# ---------- App factory ----------


def create_app(store: Optional[MessageStore] = None) -> FastAPI:
    """
    Build the API. Pass ``store`` to inject one; otherwise a store is built
    from settings when the app starts.
    """
    application = FastAPI(title="Chat API", lifespan=lifespan)
    application.state.store = store

    # logging is added last so it wraps CORS and sees preflights too
    application.middleware("http")(cors_middleware)
    application.middleware("http")(logging_middleware)

    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
