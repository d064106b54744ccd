"""
테넌트 설정 저장소 및 핫 리로드 시스템

도메인별 봇 판별 파라미터, 리다이렉트 URL, 랜딩 페이지 표시 힌트를
YAML 설정 파일에서 읽고, 파일 변경 시 프로세스 재시작 없이 교체합니다.

설계 원칙:
- 설정 스냅샷은 불변 객체, 리로드는 참조 교체로만 반영
- 락은 참조 복사/교체 구간에만 사용 (파일 I/O, 파싱은 락 밖에서 수행)
- 리로드 실패 시 이전 설정 유지 (잘못된 편집으로 서비스가 중단되지 않음)
- 싱글톤 대신 주입 가능한 저장소 객체

사용법:
    ```python
    store = ConfigStore.initialize("config.yaml")

    # 현재 스냅샷 조회
    settings = store.current_settings()

    # 호스트 라벨로 테넌트 조회
    policy = store.lookup_tenant("example.com")

    # 앱 종료 시
    store.close()
    ```
"""

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping

import yaml
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from gate_lib.errors import ConfigError, ConfigErrorKind, WatchError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080

# 단일 테넌트(flat) 설정의 도메인 표기
FLAT_DOMAIN = "*"

TENANT_STRING_FIELDS = (
    "base_redirect_url",
    "expect_bot_param",
    "expect_bot_value",
    "bot_cookie_name",
    "bot_cookie_value",
    "page_template",
)
TENANT_INT_FIELDS = (
    "min_redirect_seconds",
    "max_redirect_seconds",
)
TENANT_FIELDS = TENANT_STRING_FIELDS + TENANT_INT_FIELDS


@dataclass(frozen=True)
class RenderContext:
    """랜딩 페이지 렌더링 변수

    리다이렉트 지연 시간은 표시용 힌트이며 서버에서 해석하지 않습니다.
    """

    page_template: str
    min_redirect_seconds: int
    max_redirect_seconds: int

    def as_template_vars(self) -> dict[str, Any]:
        return {
            "page_template": self.page_template,
            "min_redirect_seconds": self.min_redirect_seconds,
            "max_redirect_seconds": self.max_redirect_seconds,
        }


@dataclass(frozen=True)
class TenantPolicy:
    """도메인별 테넌트 정책"""

    domain: str
    base_redirect_url: str = ""
    expect_bot_param: str = ""
    expect_bot_value: str = ""
    bot_cookie_name: str = ""
    bot_cookie_value: str = ""
    page_template: str = ""
    min_redirect_seconds: int = 0
    max_redirect_seconds: int = 0

    def is_approved(self, query_value: str, cookie_value: str) -> bool:
        """승인된 방문자 여부

        쿼리 파라미터가 기대값과 같거나, 이미 승인 쿠키를 가진 경우 승인.
        """
        return (
            query_value == self.expect_bot_value
            or cookie_value == self.bot_cookie_value
        )

    def render_context(self) -> RenderContext:
        return RenderContext(
            page_template=self.page_template,
            min_redirect_seconds=self.min_redirect_seconds,
            max_redirect_seconds=self.max_redirect_seconds,
        )


@dataclass(frozen=True)
class GlobalSettings:
    """전역 설정 스냅샷 (불변)"""

    port: int = DEFAULT_PORT
    domains: Mapping[str, TenantPolicy] = field(
        default_factory=lambda: MappingProxyType({})
    )
    # flat 설정일 때만 존재
    default_policy: TenantPolicy | None = None
    source_path: str = ""
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def find_tenant(self, host_label: str) -> TenantPolicy | None:
        """호스트 라벨 → 테넌트 정책

        조회 순서:
            1. 정확히 일치하는 도메인
            2. "." + 도메인 으로 끝나는 도메인 중 가장 긴 것
            3. flat 설정의 기본 정책

        Args:
            host_label: 요청 호스트에서 추출한 라벨

        Returns:
            TenantPolicy 또는 None (일치 없음)
        """
        policy = self.domains.get(host_label)
        if policy is not None:
            return policy

        best: TenantPolicy | None = None
        for domain, candidate in self.domains.items():
            if not host_label.endswith("." + domain):
                continue
            if best is None or len(domain) > len(best.domain):
                best = candidate

        if best is not None:
            return best

        return self.default_policy


_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_DECIMAL_PATTERN = re.compile(r"[+-]?\d+")

# 평문 스칼라를 원문 그대로 둘 YAML 1.1 암묵 타입
_TEXT_PRESERVED_TAGS = frozenset(
    {
        "tag:yaml.org,2002:bool",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:timestamp",
    }
)


class TextScalarLoader(yaml.SafeLoader):
    """평문 스칼라를 원문 문자열로 읽는 SafeLoader

    007, 0x1F, yes, 1e3 같은 값이 7, 31, True, 1000.0으로 바뀌지 않도록
    bool/int/float/timestamp 암묵 변환을 끕니다. null은 그대로 None.
    정수 필드는 _parse_int에서 10진 문자열을 변환합니다.
    """


TextScalarLoader.yaml_implicit_resolvers = {
    first_char: [
        (tag, regexp) for tag, regexp in resolvers if tag not in _TEXT_PRESERVED_TAGS
    ]
    for first_char, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def substitute_env_vars(config: Any) -> Any:
    """설정 값에서 환경변수 치환

    ${VAR_NAME} 형식만 환경변수 값으로 치환합니다.
    정의되지 않은 변수와 중괄호 없는 $VAR_NAME은 그대로 둡니다.
    """
    if isinstance(config, dict):
        return {k: substitute_env_vars(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [substitute_env_vars(item) for item in config]
    elif isinstance(config, str):

        def replace(match: re.Match) -> str:
            return os.getenv(match.group(1), match.group(0))

        return _ENV_VAR_PATTERN.sub(replace, config)
    return config


def _parse_error(message: str, source_path: str) -> ConfigError:
    return ConfigError(message, ConfigErrorKind.PARSE_FAILURE, source_path or None)


def _parse_str(data: dict[str, Any], key: str, source_path: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if not isinstance(value, (str, int, float)):
        raise _parse_error(
            f"'{key}' 값은 문자열이어야 함: {value!r}", source_path
        )
    return str(value)


def _parse_int(
    data: dict[str, Any], key: str, default: int, source_path: str
) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, str) and _DECIMAL_PATTERN.fullmatch(value):
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise _parse_error(f"'{key}' 값은 정수여야 함: {value!r}", source_path)
    return value


def _parse_tenant(
    domain: str, tenant_config: dict[str, Any], source_path: str
) -> TenantPolicy:
    """테넌트 설정 파싱"""
    values: dict[str, Any] = {}
    for key in TENANT_STRING_FIELDS:
        values[key] = _parse_str(tenant_config, key, source_path)
    for key in TENANT_INT_FIELDS:
        values[key] = _parse_int(tenant_config, key, 0, source_path)
    return TenantPolicy(domain=domain, **values)


def parse_settings(raw_config: Any, source_path: str = "") -> GlobalSettings:
    """YAML 문서 → GlobalSettings

    구조만 검증하며 값의 의미(min ≤ max 등)는 검증하지 않습니다.

    Args:
        raw_config: TextScalarLoader로 읽은 문서
        source_path: 오류 메시지용 파일 경로

    Returns:
        GlobalSettings 스냅샷

    Raises:
        ConfigError: 구조가 스키마와 맞지 않을 때 (PARSE_FAILURE)
    """
    # 편집기가 파일을 비운 직후의 이벤트를 빈 설정으로 반영하지 않도록 거부
    if raw_config is None:
        raise _parse_error("설정 문서가 비어 있음", source_path)
    if not isinstance(raw_config, dict):
        raise _parse_error(
            f"최상위 값은 매핑이어야 함: {type(raw_config).__name__}", source_path
        )

    config = substitute_env_vars(raw_config)
    port = _parse_int(config, "port", DEFAULT_PORT, source_path)

    domains_config = config.get("domains")
    default_policy = None
    if domains_config is None:
        domains_config = {}
        if any(key in config for key in TENANT_FIELDS):
            default_policy = _parse_tenant(FLAT_DOMAIN, config, source_path)
    elif not isinstance(domains_config, dict):
        raise _parse_error("'domains' 값은 매핑이어야 함", source_path)

    domains: dict[str, TenantPolicy] = {}
    for domain, tenant_config in domains_config.items():
        if not isinstance(domain, str):
            raise _parse_error(f"도메인 키는 문자열이어야 함: {domain!r}", source_path)
        if not isinstance(tenant_config, dict):
            raise _parse_error(
                f"도메인 '{domain}' 설정은 매핑이어야 함", source_path
            )
        domains[domain] = _parse_tenant(domain, tenant_config, source_path)

    return GlobalSettings(
        port=port,
        domains=MappingProxyType(domains),
        default_policy=default_policy,
        source_path=source_path,
    )


def load_settings(config_path: str) -> GlobalSettings:
    """설정 파일 읽기 + 파싱

    Raises:
        ConfigError: 읽기 실패 (READ_FAILURE) 또는 파싱 실패 (PARSE_FAILURE)
    """
    try:
        with open(config_path, encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(
            f"설정 파일 읽기 실패: {e}", ConfigErrorKind.READ_FAILURE, config_path
        ) from e

    try:
        raw_config = yaml.load(content, Loader=TextScalarLoader)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"설정 파일 파싱 실패: {e}", ConfigErrorKind.PARSE_FAILURE, config_path
        ) from e

    return parse_settings(raw_config, config_path)


class ConfigStore:
    """테넌트 설정 저장소

    요청 처리 스레드/코루틴은 current_settings(), lookup_tenant()로 동시에 읽고,
    ConfigWatcher 스레드는 reload()로 스냅샷 전체를 교체합니다.
    읽는 쪽은 항상 이전 또는 새 스냅샷 중 하나를 온전히 봅니다.
    """

    def __init__(self, config_path: str, settings: GlobalSettings):
        """
        Args:
            config_path: 설정 파일 경로
            settings: 초기 설정 스냅샷
        """
        self._config_path = str(config_path)
        self._settings = settings
        # 스냅샷 참조 복사/교체 전용
        self._lock = threading.Lock()
        # 리로드 시도 직렬화 (수동 reload()와 watcher 간 순서 보장)
        self._reload_lock = threading.Lock()
        self._callbacks: list[Callable[[GlobalSettings], Any]] = []
        self._watcher: "ConfigWatcher | None" = None
        self._last_error: str | None = None

    @classmethod
    def initialize(cls, config_path: str, *, watch: bool = True) -> "ConfigStore":
        """설정 파일을 로드하고 파일 감시를 시작한 저장소 생성

        Args:
            config_path: 설정 파일 경로
            watch: 파일 감시 시작 여부

        Returns:
            준비된 ConfigStore

        Raises:
            ConfigError: 읽기/파싱/감시 시작 실패
        """
        config_path = str(config_path)
        settings = load_settings(config_path)
        store = cls(config_path, settings)

        logger.info(
            f"[ConfigStore] 설정 로드 완료: {config_path}, "
            f"port={settings.port}, {len(settings.domains)}개 도메인"
        )

        if watch:
            store.start_watching()
        return store

    def start_watching(self) -> None:
        """설정 파일 감시 시작

        Raises:
            WatchError: 감시를 시작할 수 없을 때
        """
        if self._watcher is not None:
            return
        watcher = ConfigWatcher(self._config_path, self._on_file_changed)
        watcher.start()
        self._watcher = watcher

    def close(self) -> None:
        """파일 감시 중지"""
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def __enter__(self) -> "ConfigStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def current_settings(self) -> GlobalSettings:
        """현재 설정 스냅샷"""
        with self._lock:
            return self._settings

    def lookup_tenant(self, host_label: str) -> TenantPolicy:
        """호스트 라벨에 해당하는 테넌트 정책 조회

        Args:
            host_label: 요청 호스트에서 추출한 도메인 라벨

        Returns:
            TenantPolicy

        Raises:
            ConfigError: 일치하는 테넌트 없음 (NOT_FOUND)
        """
        policy = self.current_settings().find_tenant(host_label)
        if policy is None:
            raise ConfigError(
                f"도메인 설정 없음: {host_label}", ConfigErrorKind.NOT_FOUND
            )
        return policy

    def reload(self) -> bool:
        """설정 파일 리로드

        실패 시 로그를 남기고 이전 설정을 유지합니다.

        Returns:
            새 설정으로 교체되었으면 True
        """
        with self._reload_lock:
            logger.info(f"[ConfigStore] 설정 리로드 시작: {self._config_path}")

            try:
                settings = load_settings(self._config_path)
            except ConfigError as e:
                self._last_error = str(e)
                logger.error(f"[ConfigStore] 설정 리로드 실패, 이전 설정 유지: {e}")
                return False

            with self._lock:
                self._settings = settings
            self._last_error = None

            logger.info(
                f"[ConfigStore] 설정 리로드 완료: port={settings.port}, "
                f"{len(settings.domains)}개 도메인"
            )

            for callback in list(self._callbacks):
                try:
                    callback(settings)
                except Exception as e:
                    logger.error(f"[ConfigStore] 콜백 실행 실패: {e}")

            return True

    def _on_file_changed(self) -> None:
        logger.info("[ConfigStore] 설정 파일 변경 감지, 리로드...")
        self.reload()

    def on_reload(self, callback: Callable[[GlobalSettings], Any]) -> None:
        """리로드 콜백 등록 (새 스냅샷을 인자로 호출)"""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[GlobalSettings], Any]) -> None:
        """리로드 콜백 제거"""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def config_path(self) -> str:
        return self._config_path

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_running

    @property
    def last_error(self) -> str | None:
        """마지막 리로드 실패 메시지 (성공 시 None)"""
        return self._last_error


class _ConfigFileHandler(FileSystemEventHandler):
    """감시 대상 파일의 생성/수정/이동 이벤트만 ConfigWatcher로 전달"""

    def __init__(self, watcher: "ConfigWatcher"):
        self.watcher = watcher

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher._handle_event(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher._handle_event(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # 임시 파일 저장 후 rename 하는 편집기
        if not event.is_directory:
            self.watcher._handle_event(event.dest_path)


class ConfigWatcher:
    """파일 시스템 감시

    watchdog Observer로 설정 파일의 상위 디렉토리를 감시하고,
    대상 파일의 쓰기/생성 이벤트마다 on_change를 호출합니다.
    이벤트는 Observer 스레드에서 하나씩 처리되므로 리로드가 겹치지 않습니다.

    사용법:
        ```python
        watcher = ConfigWatcher("config.yaml", store.reload)
        watcher.start()

        # 앱 종료 시
        watcher.stop()
        ```
    """

    def __init__(self, path: str, on_change: Callable[[], Any]):
        """
        Args:
            path: 감시할 파일 경로
            on_change: 변경 시 호출할 콜백
        """
        self.path = Path(path).resolve()
        self.on_change = on_change
        self._handler = _ConfigFileHandler(self)
        self._observer: Observer | None = None

    def start(self) -> None:
        """파일 감시 시작

        Raises:
            WatchError: 상위 디렉토리가 없거나 OS 감시 기능을 사용할 수 없을 때
        """
        if self._observer is not None:
            return

        watch_dir = self.path.parent
        if not watch_dir.is_dir():
            raise WatchError(f"감시 디렉토리 없음: {watch_dir}", str(self.path))

        observer = Observer()
        try:
            observer.schedule(self._handler, str(watch_dir), recursive=False)
            observer.start()
        except Exception as e:
            raise WatchError(f"파일 감시 시작 실패: {e}", str(self.path)) from e

        self._observer = observer
        logger.info(f"[ConfigWatcher] 파일 감시 시작: {self.path}")

    def stop(self, timeout: float | None = 5.0) -> None:
        """파일 감시 중지"""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout)
        self._observer = None
        logger.info(f"[ConfigWatcher] 파일 감시 중지: {self.path}")

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def _matches(self, event_path: str | bytes) -> bool:
        return Path(os.fsdecode(event_path)).resolve() == self.path

    def _handle_event(self, event_path: str | bytes) -> None:
        if not self._matches(event_path):
            return

        logger.debug(f"[ConfigWatcher] 파일 변경 감지: {event_path}")
        try:
            self.on_change()
        except Exception as e:
            logger.error(f"[ConfigWatcher] 변경 처리 실패: {e}", exc_info=True)
