"""
cloak-gate 공통 라이브러리

에러 분류와 호스트 라벨 변환 유틸리티 제공.
"""

from .errors import (
    ConfigError,
    ConfigErrorKind,
    GateError,
    WatchError,
)
from .host_utils import extract_domain, is_ip_address, strip_port

__all__ = [
    # Errors
    "ConfigError",
    "ConfigErrorKind",
    "GateError",
    "WatchError",
    # Host Utils
    "extract_domain",
    "is_ip_address",
    "strip_port",
]
