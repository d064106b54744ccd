"""
API 라우터 모듈
"""

from .gate import router as gate_router
from .health import router as health_router

__all__ = ["gate_router", "health_router"]
