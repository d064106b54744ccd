"""
에러 분류 시스템 테스트
"""

import pytest

from gate_lib.errors import (
    ConfigError,
    ConfigErrorKind,
    GateError,
    WatchError,
)


class TestConfigErrorKind:
    """ConfigErrorKind 테스트"""

    def test_values(self):
        assert ConfigErrorKind.READ_FAILURE.value == "read_failure"
        assert ConfigErrorKind.PARSE_FAILURE.value == "parse_failure"
        assert ConfigErrorKind.WATCH_FAILURE.value == "watch_failure"
        assert ConfigErrorKind.NOT_FOUND.value == "not_found"

    def test_str_enum(self):
        assert ConfigErrorKind("not_found") is ConfigErrorKind.NOT_FOUND


class TestConfigError:
    """ConfigError 테스트"""

    @pytest.mark.parametrize("kind", list(ConfigErrorKind))
    def test_kind_and_path(self, kind):
        error = ConfigError("msg", kind, "config.yaml")

        assert error.kind is kind
        assert error.path == "config.yaml"
        assert set(vars(error)) == {"kind", "path"}

    def test_str_includes_kind_and_path(self):
        error = ConfigError(
            "설정 파일 읽기 실패", ConfigErrorKind.READ_FAILURE, "config.yaml"
        )
        assert str(error) == "[read_failure] 설정 파일 읽기 실패 (config.yaml)"

    def test_str_without_path(self):
        error = ConfigError("도메인 설정 없음: other.com", ConfigErrorKind.NOT_FOUND)
        assert str(error) == "[not_found] 도메인 설정 없음: other.com"

    def test_hierarchy(self):
        error = ConfigError("msg", ConfigErrorKind.PARSE_FAILURE)
        assert isinstance(error, GateError)
        assert isinstance(error, Exception)


class TestWatchError:
    """WatchError 테스트"""

    def test_kind_is_watch_failure(self):
        error = WatchError("감시 실패", "/etc/gate/config.yaml")

        assert isinstance(error, ConfigError)
        assert error.kind is ConfigErrorKind.WATCH_FAILURE
        assert error.path == "/etc/gate/config.yaml"

    def test_caught_as_config_error(self):
        with pytest.raises(ConfigError):
            raise WatchError("감시 실패")
