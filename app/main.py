"""
FastAPI application entry point for ErrorCue
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.logging_config import request_id_var, setup_logging
from app.routes import debug, errors
from app.services import IngestionService, MutationService, QueryService, RetrySimulator, SlackNotifier
from app.storage import StorageMode, build_record_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger = logging.getLogger("app.main")
    settings = get_settings()

    store = await build_record_store(settings)
    notifier = SlackNotifier(settings.slack_webhook_url, settings.notifier_timeout)

    app.state.record_store = store
    app.state.notifier = notifier
    app.state.ingestion_service = IngestionService(store, notifier)
    app.state.query_service = QueryService(store, settings.list_limit, settings.stats_window_days)
    app.state.mutation_service = MutationService(
        store,
        RetrySimulator(settings.retry_success_rates, settings.retry_default_success_rate)
    )

    if store.mode == StorageMode.DEMO:
        logger.warning("ErrorCue running in DEMO mode, data will not be persisted")
    logger.info(f"ErrorCue starting up with {store.mode.value} storage")

    yield

    # Shutdown
    await store.close()
    logger.info("ErrorCue shutting down")


# Initialize FastAPI app
app = FastAPI(
    title="ErrorCue",
    description="Catch automation errors before they break your business",
    version="1.0.0",
    lifespan=lifespan
)

# Get settings
settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Storage-Mode", "X-Request-ID"]
)


@app.middleware("http")
async def storage_mode_header(request: Request, call_next):
    """Tag every response with the durability of the data behind it"""
    response = await call_next(request)
    store = getattr(request.app.state, "record_store", None)
    if store is not None:
        response.headers["X-Storage-Mode"] = store.mode.value
    return response


@app.middleware("http")
async def request_id_context(request: Request, call_next):
    """Bind a request id to every log line written while handling the request"""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(errors.router)
if settings.enable_debug_routes:
    app.include_router(debug.router)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    return {
        "message": "ErrorCue is running",
        "status": "healthy",
        "service": "errorcue",
        "storage": request.app.state.record_store.mode.value
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring"""
    store = request.app.state.record_store
    healthy = await store.health_check()
    return {
        "status": "healthy" if healthy else "degraded",
        "service": "errorcue",
        "storage": store.mode.value
    }
