"""
API 응답 스키마 모듈
"""

from .response import HealthResponse

__all__ = ["HealthResponse"]
