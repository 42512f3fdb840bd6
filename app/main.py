# app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import Settings, settings
from .core import CheckoutError
from .database import SqlStore, Store
from .geo import UnknownPickupPoint, estimate_delivery
from .logic import checkout_logic, get_order_logic, list_products_logic, seed_logic

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = SqlStore(settings.DATABASE_URL)
    store.open()
    app.state.store = store
    app.state.geo_client = httpx.AsyncClient(timeout=settings.ESTIMATE_TIMEOUT)
    try:
        yield
    finally:
        await app.state.geo_client.aclose()
        store.close()


app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.ALLOWED_ORIGIN_REGEX,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    url = request.url.path
    if request.url.query:
        url += f"?{request.url.query}"
    logger.info(f"{request.method} {url}")
    return await call_next(request)


# ---------------------------
# Dependencies
# ---------------------------
def get_store(request: Request) -> Store:
    return request.app.state.store


def get_settings() -> Settings:
    return settings


def get_geo_client(request: Request) -> Optional[httpx.AsyncClient]:
    # None outside the lifespan: estimate_delivery opens a short-lived client
    return getattr(request.app.state, "geo_client", None)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    return JSONResponse(status_code=422, content=jsonable_encoder(exc.to_body()))


# ---------------------------
# Health
# ---------------------------
@app.get("/", response_class=PlainTextResponse)
async def health():
    return "UniThrift API ✅"


# ---------------------------
# Seed / products
# ---------------------------
@app.get("/api/seed")
def seed(store: Store = Depends(get_store)):
    return seed_logic(store)


@app.get("/api/products")
def list_products(
    campus: Optional[str] = None,
    category: Optional[str] = None,
    price_min: Optional[float] = Query(None, alias="priceMin"),
    price_max: Optional[float] = Query(None, alias="priceMax"),
    store: Store = Depends(get_store),
    cfg: Settings = Depends(get_settings),
):
    try:
        return list_products_logic(store, campus, category, price_min, price_max, limit=cfg.PRODUCTS_PAGE_SIZE)
    except Exception as e:
        logger.exception("Products fetch error")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch products", "message": str(e)})


# ---------------------------
# Delivery estimate
# ---------------------------
@app.get("/api/estimate")
async def estimate(
    origin: Optional[str] = Query(None, alias="from"),
    destination: Optional[str] = Query(None, alias="to"),
    cfg: Settings = Depends(get_settings),
    client: Optional[httpx.AsyncClient] = Depends(get_geo_client),
):
    try:
        result = await estimate_delivery(
            origin,
            destination,
            api_key=cfg.ORS_API_KEY,
            url=cfg.ORS_DIRECTIONS_URL,
            timeout=cfg.ESTIMATE_TIMEOUT,
            client=client,
        )
    except UnknownPickupPoint:
        return JSONResponse(status_code=400, content={"error": "Unknown pickup point"})
    except Exception:
        logger.exception("Estimate error")
        return JSONResponse(status_code=500, content={"error": "Failed to calculate estimate"})
    return result.model_dump(exclude_none=True)


# ---------------------------
# Checkout
# ---------------------------
@app.post("/api/cart/checkout")
def cart_checkout(
    payload: Any = Body(None),
    store: Store = Depends(get_store),
    cfg: Settings = Depends(get_settings),
):
    logger.debug(f"POST /api/cart/checkout body: {payload!r}")
    try:
        return checkout_logic(store, payload, reject_unpriced=cfg.REJECT_UNPRICED_ORDERS)
    except CheckoutError:
        raise
    except Exception as e:
        logger.exception("Checkout server error")
        return JSONResponse(status_code=500, content={"error": "Checkout failed", "message": str(e)})


# ---------------------------
# Orders
# ---------------------------
@app.get("/api/orders/{order_id}")
def get_order(order_id: str, store: Store = Depends(get_store)):
    try:
        order = get_order_logic(store, order_id)
    except Exception:
        logger.exception("Order fetch error")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch order"})
    if order is None:
        return JSONResponse(status_code=404, content={"error": "Order not found"})
    return order


if __name__ == "__main__":
    import uvicorn

    logger.info(f"UniThrift API running at http://localhost:{settings.API_PORT}")
    logger.info(f"Seed data: http://localhost:{settings.API_PORT}/api/seed")
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
