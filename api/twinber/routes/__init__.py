from fastapi import APIRouter, FastAPI

from .admin import router as admin_router
from .auth import router as auth_router
from .chat import router as chat_router
from .match import router as match_router
from .survey import router as survey_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(survey_router, tags=["quiz"])
    app.include_router(match_router, tags=["compatibility"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(admin_router, tags=["admin"])


__all__ = ["include_modular_routers", "APIRouter"]
