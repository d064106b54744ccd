"""
cloak-gate HTTP 게이트 모듈

FastAPI 기반으로 요청 호스트별 테넌트 정책에 따라
리다이렉트 또는 랜딩 페이지 렌더링을 수행합니다.
"""

from .server import app, create_app

__all__ = ["app", "create_app"]
