"""
slrp_economy.api.main — FastAPI application entry point
========================================================

Run with::

    uvicorn slrp_economy.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from slrp_economy import __version__  # noqa: E402
from slrp_economy.api.deps import get_config, get_engine  # noqa: E402
from slrp_economy.api.routes.economy import router as economy_router  # noqa: E402
from slrp_economy.api.routes.owner import router as owner_router  # noqa: E402
from slrp_economy.api.routes.profiles import router as profiles_router  # noqa: E402
from slrp_economy.api.routes.shop import router as shop_router  # noqa: E402
from slrp_economy.config import EconomyConfig  # noqa: E402
from slrp_economy.database.engine import get_session, init_db, run_db  # noqa: E402
from slrp_economy.engine.rules import load_rules  # noqa: E402
from slrp_economy.errors import EconomyError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Allowed CORS origins: ``CORS_ALLOW_ORIGINS`` (comma-separated) or any."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and seed settings."""
    engine = get_engine()
    await run_db(init_db, engine)
    logger.info("Ledger API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Ledger API shutting down")


app = FastAPI(
    title="SLRP Token Economy API",
    version=__version__,
    lifespan=lifespan,
)

_origins = _cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Browsers reject credentialed requests against a wildcard origin.
    allow_credentials=_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EconomyError)
async def economy_error_handler(request: Request, exc: EconomyError):
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {
            "error": "Invalid request",
            "code": "invalid_request",
            "detail": jsonable_encoder(exc.errors()),
        },
        status_code=400,
    )


# Mount routers
app.include_router(economy_router, prefix="/api")
app.include_router(shop_router, prefix="/api")
app.include_router(profiles_router, prefix="/api")
app.include_router(owner_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/economy/info")
def economy_info(
    engine=Depends(get_engine),
    cfg: EconomyConfig = Depends(get_config),
):
    """Community branding plus the current public economy rules."""
    with get_session(engine) as session:
        rules = load_rules(session)
    return {
        "community_name": cfg.community_name,
        "token_name": cfg.token_name,
        "daily_cap": rules.daily_earn_cap,
        "daily_base_reward": rules.daily_base_reward,
        "transfer_tax_rate": rules.transfer_tax_rate,
    }
