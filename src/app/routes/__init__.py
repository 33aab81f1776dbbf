"""
FastAPI Routes.

WebSocket 채널 + API 라우트 (SSE)
"""

from . import generate, ws

__all__ = ["generate", "ws"]
