"""
Public routers - No authentication required.
- /api/health - Health check
- /term/{table_id}, /api/term/{table_id}/enter - Terminal entry
"""

from .health import router as health_router
from .terminal import router as terminal_router

__all__ = ["health_router", "terminal_router"]
