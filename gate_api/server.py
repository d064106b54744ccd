"""
FastAPI 앱 정의 및 라우터 통합

cloak-gate 게이트 서버의 메인 모듈입니다.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from gate_config import ConfigStore

from .dependencies import Settings, get_settings
from .routes import gate_router, health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """앱 라이프사이클 관리

    시작 시:
        - ConfigStore가 주입되지 않았으면 설정 파일에서 초기화
          (읽기/파싱/감시 실패 시 예외가 전파되어 서버가 시작되지 않음)

    종료 시:
        - 설정 파일 감시 중지
    """
    settings: Settings = app.state.settings

    if app.state.config_store is None:
        app.state.config_store = ConfigStore.initialize(settings.config_path)
        logger.info(f"[Server] ConfigStore 초기화 완료: {settings.config_path}")

    yield

    app.state.config_store.close()
    logger.info("[Server] 서버 종료")


def create_app(
    config_store: ConfigStore | None = None,
    settings: Settings | None = None,
    title: str = "cloak-gate",
    version: str = "1.0.0",
    debug: bool = False,
) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        config_store: 사용할 ConfigStore (None이면 lifespan에서 초기화)
        settings: 앱 설정 (None이면 환경변수에서 로드)
        title: 앱 제목
        version: 앱 버전
        debug: 디버그 모드

    Returns:
        FastAPI 앱 인스턴스
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=title,
        version=version,
        debug=debug or settings.debug,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.config_store = config_store
    app.state.templates = Jinja2Templates(directory=settings.views_dir)

    # 라우터 등록
    app.include_router(health_router)  # /health
    app.include_router(gate_router)  # /, /index{id}.html

    # 글로벌 예외 핸들러
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """글로벌 예외 핸들러"""
        logger.exception(f"[Server] 처리되지 않은 예외: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "Internal server error",
                "details": str(exc) if settings.debug else None,
            },
        )

    return app


# 기본 앱 인스턴스 (uvicorn gate_api.server:app)
app = create_app()
