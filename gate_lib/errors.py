"""
에러 분류 시스템

설정 로드/감시/조회 실패를 종류별로 구분하여
시작 시에는 치명적 오류로, 리로드 시에는 로그 후 무시로 처리할 수 있게 합니다.
"""

from enum import Enum


class ConfigErrorKind(str, Enum):
    """설정 에러 종류"""

    READ_FAILURE = "read_failure"  # 파일 없음, 읽기 불가
    PARSE_FAILURE = "parse_failure"  # YAML 문법 오류, 스키마 불일치
    WATCH_FAILURE = "watch_failure"  # 파일 감시 시작 실패
    NOT_FOUND = "not_found"  # 호스트에 해당하는 테넌트 없음


class GateError(Exception):
    """cloak-gate 기본 에러"""


class ConfigError(GateError):
    """설정 에러

    Args:
        message: 에러 메시지
        kind: 에러 종류
        path: 관련 설정 파일 경로 (선택)
    """

    def __init__(
        self,
        message: str,
        kind: ConfigErrorKind,
        path: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"[{self.kind.value}] {message} ({self.path})"
        return f"[{self.kind.value}] {message}"


class WatchError(ConfigError):
    """파일 감시 에러"""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, ConfigErrorKind.WATCH_FAILURE, path)
