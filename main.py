"""
origin-guard 서버 엔트리포인트

.env 로드 -> 설정 -> 로깅 -> 허용 목록 검증 -> 서버 기동.
SIGHUP 수신 시 설정을 다시 읽어 허용 목록 스냅샷을 교체합니다.

사용법:
    FRONTEND_URL=https://app.example.com APP_ENV=production python main.py
"""

import os
import signal
import sys
import threading

from dotenv import dotenv_values, find_dotenv

from config import get_config, reset_config
from cors import cors_config_from_config
from logging_config import get_logger, setup_logging_from_config
from originguard.allowlist import allow_list_from_config
from originguard.server import OriginGuardServer
from originguard.validate import ConfigurationError, validate_on_boot

logger = get_logger("main")

# .env에서 들어온 키 (프로세스 환경변수에 원래 있던 키는 제외)
_dotenv_keys: set = set()


def load_env_file(path: str = "") -> None:
    """.env 값을 환경변수 아래에 병합

    실제 프로세스 환경변수가 항상 우선합니다. .env에서 온 키만
    다시 읽을 때 새 값으로 갱신됩니다.
    """
    for key, value in dotenv_values(path or find_dotenv(usecwd=True)).items():
        if value is None:
            continue
        if key in _dotenv_keys or key not in os.environ:
            os.environ[key] = value
            _dotenv_keys.add(key)


load_env_file()


def build_server(cfg) -> OriginGuardServer:
    """설정으로 서버 구성 (검증 실패 시 ConfigurationError)"""
    allow_list = allow_list_from_config(cfg)
    validate_on_boot(cfg, allow_list)
    return OriginGuardServer(
        allow_list,
        cors_config_from_config(cfg),
        host=cfg.host,
        port=cfg.port,
        reject_denied=cfg.cors_reject_denied,
    )


def reload_allow_list(server: OriginGuardServer, env_path: str = "") -> bool:
    """설정을 다시 읽어 허용 목록 교체. 검증 실패 시 기존 목록 유지."""
    reset_config()
    load_env_file(env_path)
    cfg = get_config()
    allow_list = allow_list_from_config(cfg)
    try:
        validate_on_boot(cfg, allow_list)
    except ConfigurationError as e:
        logger.error("Reload rejected, keeping current allow-list: %s", e)
        return False
    server.reload_allow_list(allow_list)
    return True


def main() -> int:
    cfg = get_config()
    setup_logging_from_config(cfg)

    try:
        server = build_server(cfg)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    stop_event = threading.Event()

    def _stop(signum, frame):
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, lambda signum, frame: reload_allow_list(server))

    server.start_background()
    while not stop_event.wait(1.0):
        pass
    server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
