"""
API路由模块
"""
from .auth import router as auth_router
from .mcp import router as mcp_router
from .sessions import router as sessions_router

__all__ = [
    "auth_router",
    "mcp_router",
    "sessions_router",
]
