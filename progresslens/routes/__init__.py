"""APIRouter registration for the authoring service."""

from __future__ import annotations

from fastapi import APIRouter

from progresslens.routes.admin import router as admin_router
from progresslens.routes.student import router as student_router
from progresslens.routes.teacher_options import router as teacher_options_router
from progresslens.routes.teacher_questions import router as teacher_questions_router
from progresslens.routes.teacher_sessions import router as teacher_sessions_router
from progresslens.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(teacher_sessions_router, tags=["Sessions"])
api_router.include_router(teacher_questions_router, tags=["Questions"])
api_router.include_router(teacher_options_router, tags=["Options"])
api_router.include_router(admin_router, tags=["Admin"])
api_router.include_router(users_router, tags=["User"])
api_router.include_router(student_router, tags=["Student"])

__all__ = ["api_router"]
