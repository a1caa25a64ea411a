# src/app/main.py
from __future__ import annotations
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.app.config import settings
from src.app.deps import get_store
from src.app.domain.errors import MarketplaceError, PartialOrderError
from src.app.domain.models import now_utc
from src.app.routers.auth import router as auth_router
from src.app.routers.cooks import router as cooks_router
from src.app.routers.demo import router as demo_router
from src.app.routers.orders import router as orders_router
from src.app.routers.recipes import router as recipes_router
from src.app.services.seed import seed_demo_data

# Plain stdout logging (fine for dev and containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Baty Marketplace API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(recipes_router)
app.include_router(orders_router)
app.include_router(cooks_router)
app.include_router(demo_router)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    body: dict[str, str] = {"error": exc.message}
    if isinstance(exc, PartialOrderError):
        body["orderId"] = exc.order_id
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid request"})


@app.on_event("startup")
async def startup() -> None:
    if settings.SEED_DEMO_DATA and not settings.is_production:
        seed_demo_data(get_store())


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": now_utc().isoformat()}
