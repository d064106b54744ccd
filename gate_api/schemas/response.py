"""
API 응답 스키마 정의

헬스체크 응답용 Pydantic 모델입니다.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스체크 응답

    GET /health 응답으로 반환됩니다.
    """

    status: str = Field(..., description="서버 상태 (ok / degraded)")
    port: int = Field(..., description="설정 파일의 포트")
    tenant_count: int = Field(..., ge=0, description="설정된 도메인 수")
    single_tenant: bool = Field(
        default=False,
        description="flat 단일 테넌트 설정 여부",
    )
    loaded_at: datetime = Field(..., description="현재 설정 로드 시각")
    watching: bool = Field(..., description="설정 파일 감시 중 여부")
    last_reload_error: str | None = Field(
        default=None,
        description="마지막 리로드 실패 메시지 (이전 설정 유지 중)",
    )
    uptime_seconds: int = Field(..., ge=0, description="가동 시간 (초)")

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ok",
                "port": 8080,
                "tenant_count": 2,
                "single_tenant": False,
                "loaded_at": "2026-01-16T10:30:00Z",
                "watching": True,
                "last_reload_error": None,
                "uptime_seconds": 3600,
            }
        }
    }
