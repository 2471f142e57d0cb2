import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import get_settings
from app.database import close_db, init_db
from app.exceptions import AdmirerError, InvalidArgument
from app.rate_limit.limiter import limiter
from app.account.router import router as account_router
from app.admiration.router import router as admiration_router
from app.dashboard.router import router as dashboard_router
from app.identity.router import router as identity_router
from app.safety.router import router as safety_router
from shared.middleware.error_handler import error_envelope, error_envelope_middleware
from shared.middleware.request_id import request_id_middleware

logger = logging.getLogger(__name__)


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Secret Admirer Service

Users signed in with X secretly admire up to five other X handles.  When two
users admire each other, both see the match.

* **Identity** — link the session's X handle to the account, accept the
  current Privacy Policy and Terms (18+).
* **Admirations** — send a secret admiration; a mutual pair is revealed as a match.
* **Safety** — report and block users; blocks hide each other from dashboards.
* **Account** — delete the account and every record tied to it.
* **Dashboard** — counters, recent matches, sent admirations and blocks.

### Authentication
All endpoints except `/health` require an X-provider session token:
```
Authorization: Bearer <id_token>
```

### Error shape
All domain errors return a consistent JSON envelope:
```json
{ "error": { "code": "failed-precondition", "message": "Human-readable message" },
  "request_id": "..." }
```

### Rate limits
Each action has a per-user budget; `429` with code `resource-exhausted` is
returned once it is spent.  A coarse per-IP throttle applies on top.
"""

_TAGS_METADATA = [
    {"name": "identity", "description": "Handle sync/claim and policy acceptance."},
    {"name": "admirations", "description": "Send secret admirations; mutual pairs match."},
    {"name": "safety", "description": "Reports, blocks and unblocks."},
    {"name": "account", "description": "Account deletion (type `DELETE` to confirm)."},
    {"name": "dashboard", "description": "Read-only view for the signed-in user."},
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.info("Starting admirer service (env=%s)", settings.env_name)
    init_db(settings.admirer_database_url)
    yield
    await close_db()


async def _admirer_error_handler(request: Request, exc: AdmirerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(request, exc.code, str(exc.detail)),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies are invalid-argument errors, not FastAPI's 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc", ())
    field = str(loc[-1]) if loc else "request"
    message = f"{field}: {first.get('msg', 'Invalid value')}"
    logger.warning("Request validation failed on %s: %s", request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(request, InvalidArgument.code, message),
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Secret Admirer Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AdmirerError, _admirer_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(identity_router, prefix="/api/v1")
    app.include_router(admiration_router, prefix="/api/v1")
    app.include_router(safety_router, prefix="/api/v1")
    app.include_router(account_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"], include_in_schema=True)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="admirer")

    return app


app = create_app()
