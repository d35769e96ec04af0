import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis import RedisError

from .config import settings
from .database import engine
from .models.generated import Base
from .redis_client import redis_client
from .routers import availability, bookings, cart, company, services
from .services.errors import BookingError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="CleanBook API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for module in (availability, bookings, services, company, cart):
    app.include_router(module.router, prefix="/api")


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError as e:
        logger.warning(f"Health check: Redis unavailable: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
