"""
Pytest 설정 및 공통 Fixture
"""

from pathlib import Path
from typing import Any, Iterator

import pytest

from gate_config import ConfigStore


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """샘플 설정 (단일 도메인)"""
    from tests.sample_data import generate_sample_config
    return generate_sample_config("basic")


@pytest.fixture
def sample_config_multi() -> dict[str, Any]:
    """샘플 설정 (여러 도메인)"""
    from tests.sample_data import generate_sample_config
    return generate_sample_config("multi")


@pytest.fixture
def sample_config_flat() -> dict[str, Any]:
    """샘플 설정 (flat 단일 테넌트)"""
    from tests.sample_data import generate_sample_config
    return generate_sample_config("flat")


@pytest.fixture
def config_file(tmp_path: Path, sample_config: dict[str, Any]) -> Path:
    """샘플 설정이 기록된 config.yaml 경로"""
    from tests.sample_data import write_config

    path = tmp_path / "config.yaml"
    write_config(path, sample_config)
    return path


@pytest.fixture
def config_store(config_file: Path) -> Iterator[ConfigStore]:
    """파일 감시 없는 ConfigStore

    리로드는 테스트에서 직접 reload()로 수행.
    """
    store = ConfigStore.initialize(str(config_file), watch=False)
    yield store
    store.close()


@pytest.fixture
def watched_store(config_file: Path) -> Iterator[ConfigStore]:
    """파일 감시 중인 ConfigStore"""
    store = ConfigStore.initialize(str(config_file))
    yield store
    store.close()
