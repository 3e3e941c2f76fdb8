from __future__ import annotations

from practice_api.api.routes.health import router as health_router
from practice_api.api.routes.settings import router as settings_router

__all__ = ["health_router", "settings_router"]
