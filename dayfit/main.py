import logging

from fastapi import FastAPI

from dayfit.core.config import settings
from dayfit.core.db import Base, engine
from dayfit import models  # noqa: F401  registers tables on Base.metadata
from dayfit.api.v1.health import router as health_router
from dayfit.api.v1.user import router as user_router
from dayfit.api.v1.sleep import router as sleep_router
from dayfit.api.v1.meals import router as meals_router
from dayfit.api.v1.routines import router as routines_router
from dayfit.api.v1.templates import router as templates_router
from dayfit.api.v1.products import router as products_router
from dayfit.api.v1.exercises import router as exercises_router
from dayfit.api.v1.days import router as days_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="dayfit", version="1.0.0")

if engine:
    Base.metadata.create_all(bind=engine)

app.include_router(health_router, prefix="/v1")
app.include_router(user_router, prefix="/v1")
app.include_router(sleep_router, prefix="/v1")
app.include_router(meals_router, prefix="/v1")
app.include_router(routines_router, prefix="/v1")
app.include_router(templates_router, prefix="/v1")
app.include_router(products_router, prefix="/v1")
app.include_router(exercises_router, prefix="/v1")
app.include_router(days_router, prefix="/v1")
