"""
FastAPI application for the AutoMeet scheduling backend.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from automeet.config import settings
from automeet.core.database import Database
from automeet.core.exceptions import AutoMeetError
from automeet.core.logging import bind_context, clear_context, configure_logging, get_logger
from automeet.routers.auth import router as auth_router
from automeet.routers.meetings import router as meetings_router
from automeet.routers.users import router as users_router
from automeet.services.attendance import AttendancePredictorClient
from automeet.services.identity import JWTIdentityVerifier
from automeet.services.mail import build_transport
from automeet.services.meetings import MeetingWorkflow
from automeet.services.notifications import NotificationDispatcher
from automeet.services.users import UserService

log = get_logger(__name__)

API_PREFIX = "/api"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    configure_logging(settings.log_level, settings.json_logs)
    log.info("application_starting", version=VERSION)

    db = Database()
    await db.init_schema()
    users = db.collection("users")
    meetings = db.collection("meetings")

    predictor = AttendancePredictorClient()
    transport = build_transport()
    dispatcher = NotificationDispatcher(transport)

    app.state.dispatcher = dispatcher
    app.state.workflow = MeetingWorkflow(meetings, users, predictor, dispatcher)
    app.state.user_service = UserService(users)
    app.state.verifier = JWTIdentityVerifier()

    yield

    # Shutdown: let in-flight notification batches finish
    if dispatcher.pending:
        log.info("draining_notifications", pending=dispatcher.pending)
    await dispatcher.drain()
    await predictor.close()
    await transport.close()
    log.info("application_stopped")


app = FastAPI(
    title="AutoMeet",
    description="Meeting scheduling with attendance prediction and email notifications",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(meetings_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(auth_router, prefix=API_PREFIX)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    """Tag every log line emitted while handling a request."""
    clear_context()
    bind_context(method=request.method, path=request.url.path)
    return await call_next(request)


@app.exception_handler(AutoMeetError)
async def automeet_error_handler(request: Request, exc: AutoMeetError):
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else "Invalid request body"
    log.warning("request_validation_failed", path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
async def root():
    return {"message": "AutoMeet backend is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


# Run with: uvicorn automeet.main:app --host 0.0.0.0 --port 8080
