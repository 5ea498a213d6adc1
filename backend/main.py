from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from database import Base, build_engine, build_session_factory
from exceptions import LedgerException, InfrastructureError
from utils.auth_utils import get_jwt_secret
from datetime import datetime
from typing import Optional
import models  # noqa: F401  registers every table on Base.metadata
import routers.chart_of_accounts as chart_of_accounts
import routers.vouchers as vouchers
import routers.financial_reports as financial_reports
import os
import logging


LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True) # Create 'logs' directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also add a StreamHandler so logs show up in the terminal
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
# --- End Logging Configuration ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the storage handle: build it at startup, dispose it at shutdown."""
    # Refuse to start without a token signing secret
    get_jwt_secret()

    engine = build_engine(app.state.database_url)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    if os.getenv("AUTO_CREATE_TABLES", "false").lower() in ("1", "true", "yes"):
        # Alembic owns the schema in production; this is for local runs
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")

    logger.info(f"Accounts API started ({engine.url.get_backend_name()})")
    yield

    engine.dispose()
    logger.info("Accounts API stopped, database engine disposed")


async def ledger_exception_handler(request: Request, exc: LedgerException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    error = InfrastructureError(details={"reason": exc.__class__.__name__})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(database_url: Optional[str] = None) -> FastAPI:
    """
    Build the API application.

    ``database_url`` overrides DATABASE_URL / POSTGRES_* for this app only
    (tests pass an in-memory SQLite URL).
    """
    app = FastAPI(title="ERP Accounts API", version="1.0.0", lifespan=lifespan)
    app.state.database_url = database_url

    allowed_origins_str = os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
    )
    # Split the string into a list, stripping any whitespace
    allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerException, ledger_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title="ERP Accounts API",
            version="1.0.0",
            description="Chart of accounts, vouchers and financial reports",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }
        # Apply security globally to all endpoints
        openapi_schema["security"] = [{"BearerAuth": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    app.include_router(chart_of_accounts.router)
    app.include_router(vouchers.router)
    app.include_router(financial_reports.router)

    @app.get("/")
    def read_root():
        return {"message": "ERP Accounts API"}

    return app


app = create_app()
