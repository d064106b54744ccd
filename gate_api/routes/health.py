"""
헬스체크 API 라우터

서버 상태와 현재 설정 스냅샷 요약을 반환합니다.
테넌트 조회를 거치지 않으므로 어떤 호스트로도 호출할 수 있습니다.
"""

import time

from fastapi import APIRouter, Depends

from gate_config import ConfigStore

from ..dependencies import get_config_store
from ..schemas.response import HealthResponse

router = APIRouter(tags=["Health"])

# 서버 시작 시각
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="헬스체크",
    description="서버 상태 및 설정 로드 상태를 반환합니다.",
)
async def health_check(
    config_store: ConfigStore = Depends(get_config_store),
) -> HealthResponse:
    """서버 헬스체크

    마지막 리로드가 실패했으면 이전 설정으로 서비스 중이므로 degraded.
    """
    settings = config_store.current_settings()
    last_error = config_store.last_error

    return HealthResponse(
        status="degraded" if last_error else "ok",
        port=settings.port,
        tenant_count=len(settings.domains),
        single_tenant=settings.default_policy is not None,
        loaded_at=settings.loaded_at,
        watching=config_store.is_watching,
        last_reload_error=last_error,
        uptime_seconds=int(time.time() - _start_time),
    )


@router.get(
    "/health/live",
    summary="Liveness 체크",
    description="서버가 살아있는지 확인합니다. (Kubernetes liveness probe용)",
)
async def liveness() -> dict[str, str]:
    """Liveness 체크 (경량)"""
    return {"status": "ok"}
