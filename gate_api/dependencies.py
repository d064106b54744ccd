"""
FastAPI 의존성 주입 모듈

ConfigStore, 템플릿 엔진, 요청별 테넌트 정책 등의 의존성을 관리합니다.
ConfigStore는 전역 변수가 아닌 app.state에 주입되므로
테스트마다 독립된 저장소를 사용할 수 있습니다.
"""

import logging
import os
from pathlib import Path

from fastapi import Depends, HTTPException, Request, status
from fastapi.templating import Jinja2Templates

from gate_config import ConfigStore, TenantPolicy
from gate_lib.errors import ConfigError, ConfigErrorKind
from gate_lib.host_utils import extract_domain

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


# ============================================================================
# 환경 설정 의존성
# ============================================================================
class Settings:
    """앱 설정 클래스"""

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = self.env == "dev"

        # 서버 설정 (포트는 설정 파일의 port 사용)
        self.api_host = os.getenv("API_HOST", "0.0.0.0")

        # 설정 파일 / 템플릿 경로
        self.config_path = os.getenv("CONFIG_PATH", "config.yaml")
        self.views_dir = os.getenv("VIEWS_DIR", str(PROJECT_ROOT / "views"))

        self.log_level = os.getenv("LOG_LEVEL", "DEBUG" if self.debug else "INFO")


_settings: Settings | None = None


def get_settings() -> Settings:
    """앱 설정 의존성 (싱글톤)

    Returns:
        Settings 인스턴스
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# ============================================================================
# ConfigStore 의존성
# ============================================================================
def get_config_store(request: Request) -> ConfigStore:
    """ConfigStore 의존성

    Raises:
        HTTPException: 저장소가 초기화되지 않았을 때 (503)
    """
    store = getattr(request.app.state, "config_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Config store not initialized",
        )
    return store


def get_templates(request: Request) -> Jinja2Templates:
    """랜딩 페이지 템플릿 엔진"""
    return request.app.state.templates


# ============================================================================
# 테넌트 정책 의존성
# ============================================================================
async def get_tenant_policy(
    request: Request,
    config_store: ConfigStore = Depends(get_config_store),
) -> TenantPolicy:
    """요청 Host 헤더로 테넌트 정책 조회

    Raises:
        HTTPException: 일치하는 테넌트가 없을 때 (404)
    """
    domain = extract_domain(request.headers.get("host"))

    try:
        return config_store.lookup_tenant(domain)
    except ConfigError as e:
        if e.kind is not ConfigErrorKind.NOT_FOUND:
            raise
        logger.warning(f"[Gate] 도메인 설정 조회 실패: {domain} - {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
