"""
테넌트 설정 관리 모듈

ConfigStore, ConfigWatcher를 통해 도메인별 설정을 관리하고 핫 리로드를 지원합니다.
"""

from .config_manager import (
    ConfigStore,
    ConfigWatcher,
    GlobalSettings,
    RenderContext,
    TenantPolicy,
    load_settings,
    parse_settings,
)

__all__ = [
    "ConfigStore",
    "ConfigWatcher",
    "GlobalSettings",
    "RenderContext",
    "TenantPolicy",
    "load_settings",
    "parse_settings",
]
