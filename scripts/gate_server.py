#!/usr/bin/env python
"""
cloak-gate 게이트 서버 실행 스크립트

설정 파일을 먼저 로드하여 포트를 결정하고, 파일 감시를 시작한 뒤
uvicorn으로 서버를 실행합니다. 설정 파일을 읽거나 감시할 수 없으면
서버를 시작하지 않고 종료합니다.

사용법:
    # 기본 (config.yaml, 설정 파일의 port)
    python scripts/gate_server.py

    # 커스텀 설정 파일 / 포트
    python scripts/gate_server.py --config /etc/cloak-gate/config.yaml --port 9000
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

logger = logging.getLogger("gate_server")


def setup_logging(level: str = "INFO") -> None:
    """로깅 설정"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def load_env_file(env: str) -> None:
    """환경별 .env 파일 로드"""
    env_files = [
        PROJECT_ROOT / f".env.{env}",
        PROJECT_ROOT / ".env.local",
        PROJECT_ROOT / ".env",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file)
            print(f"[Config] 환경 파일 로드: {env_file}")
            break


def main() -> None:
    """메인 함수"""
    parser = argparse.ArgumentParser(description="cloak-gate 게이트 서버")

    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="prod",
        help="실행 환경 (기본: prod)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="설정 파일 경로 (기본: 환경변수 CONFIG_PATH 또는 config.yaml)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="바인딩 호스트 (기본: 환경변수 API_HOST 또는 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="바인딩 포트 (기본: 설정 파일의 port)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="로그 레벨",
    )

    args = parser.parse_args()

    os.environ["ENV"] = args.env
    load_env_file(args.env)
    if args.config:
        os.environ["CONFIG_PATH"] = args.config

    import uvicorn

    from gate_api.dependencies import get_settings
    from gate_api.server import create_app
    from gate_config import ConfigStore
    from gate_lib.errors import ConfigError

    settings = get_settings()
    log_level = args.log_level or settings.log_level
    setup_logging(log_level)

    try:
        config_store = ConfigStore.initialize(settings.config_path)
    except ConfigError as e:
        logger.error(f"[Server] 설정 초기화 실패: {e}")
        sys.exit(1)

    host = args.host or settings.api_host
    port = args.port or config_store.current_settings().port

    logger.info(f"[Server] 시작: http://{host}:{port} (설정: {settings.config_path})")

    app = create_app(config_store=config_store, settings=settings)
    try:
        uvicorn.run(app, host=host, port=port, log_level=log_level.lower())
    finally:
        config_store.close()


if __name__ == "__main__":
    main()
