import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError, SQLAlchemyError
from starlette.exceptions import HTTPException

from ecolens.api import auth, emissions, dashboard, users
from ecolens.config import Settings, settings as default_settings
from ecolens.db.session import Database
from ecolens.db.models import utcnow, isoformat_utc
from ecolens.errors import EcoLensError, Unavailable, Internal

logger = logging.getLogger("ecolens")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid input")


def register_error_handlers(app: FastAPI):

    @app.exception_handler(EcoLensError)
    async def domain_error(request: Request, exc: EcoLensError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(OperationalError)
    @app.exception_handler(PoolTimeoutError)
    async def storage_unavailable(request: Request, exc: SQLAlchemyError):
        logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
        return _error(Unavailable.status_code, Unavailable.default_message)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(Internal.status_code, Internal.default_message)


def create_app(settings: Settings = None, db: Database = None) -> FastAPI:
    """
    Build the application. The database handle is created here, stored on
    ``app.state`` and connected for the lifetime of the app.
    """
    settings = settings or default_settings
    db = db or Database(settings.DATABASE_URL, timeout=settings.DB_TIMEOUT)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        db.connect()
        yield
        # Shutdown
        db.disconnect()

    app = FastAPI(title="EcoLens API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(emissions.router)
    app.include_router(dashboard.router)

    @app.get("/api/health")
    def health():
        try:
            database = "ok" if db.ping() else "disconnected"
        except SQLAlchemyError as exc:
            logger.warning("Health check ping failed: %s", exc)
            database = "unreachable"
        return {"status": "ok", "service": "ecolens", "database": database,
                "timestamp": isoformat_utc(utcnow())}

    return app


app = create_app()
