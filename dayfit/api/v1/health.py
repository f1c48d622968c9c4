from fastapi import APIRouter
from dayfit.core.config import settings
from dayfit.core.db import engine

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "db": engine is not None,
        "auth": settings.AUTH_API_BASE is not None,
        "ai": bool(settings.GEMINI_API_KEY or settings.OPENAI_API_KEY),
    }
