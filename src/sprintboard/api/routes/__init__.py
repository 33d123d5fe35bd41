"""API routers."""

from sprintboard.api.routes.poker import router as poker_router
from sprintboard.api.routes.retro import router as retro_router

__all__ = ["poker_router", "retro_router"]
