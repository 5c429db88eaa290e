import logging
from fastapi import FastAPI
from app.api.exceptions import register_error_handler
from app.api.v1.routes import catalog, discounts, checkout, orders, tickets
from app.core.middleware.http_ctx import HttpContextMiddleware
from app.core.redis import create_redis, close_redis


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    try:
        yield
    finally:
        await close_redis(r)


app = FastAPI(lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, request_id_header="X-Request-ID")
register_error_handler(app)
app.include_router(catalog.router)
app.include_router(discounts.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(tickets.router)
