"""
origin-guard 중앙 집중식 설정 모듈

CORS 허용 목록과 서버/로깅 설정을 단일 모듈로 통합합니다.
우선순위: 환경변수 > config.json > 기본값

사용법:
    from config import get_config
    cfg = get_config()
    print(cfg.frontend_url)  # https://app.example.com
"""

import os
import json
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Config:
    """중앙 집중식 설정 (불변 객체)"""

    # 배포 환경
    app_env: str = "development"       # "development" | "production"

    # CORS 허용 목록
    frontend_url: str = ""
    extra_origins: str = ""            # Comma-separated origins
    dev_origins: str = "http://localhost:3000,http://localhost:5000"
    include_dev_origins: bool = True

    # CORS 응답 헤더
    cors_credentials: bool = True
    cors_allowed_methods: str = "GET, POST, PUT, DELETE, OPTIONS"
    cors_allowed_headers: str = "Content-Type, Authorization"
    cors_expose_headers: str = ""
    cors_max_age: int = 86400          # Preflight cache (seconds)
    cors_reject_denied: bool = False   # 403 for denied origins

    # HTTP 서버
    host: str = "127.0.0.1"
    port: int = 8080

    # 로깅
    log_level: str = "INFO"
    log_format: str = "text"           # "text" | "json"
    log_file: str = ""                 # 빈 값이면 stdout만
    log_max_bytes: int = 10_485_760    # 10MB
    log_backup_count: int = 5

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


def _str_to_bool(s) -> bool:
    """문자열을 bool로 변환"""
    if isinstance(s, bool):
        return s
    return str(s).lower() in ("true", "1", "yes")


# 환경변수 매핑 (ENV_NAME -> (field_name, type_converter))
_ENV_MAP = {
    "APP_ENV": ("app_env", str),
    "FRONTEND_URL": ("frontend_url", str),
    "CORS_ALLOWED_ORIGINS": ("extra_origins", str),
    "CORS_DEV_ORIGINS": ("dev_origins", str),
    "CORS_INCLUDE_DEV_ORIGINS": ("include_dev_origins", _str_to_bool),
    "CORS_CREDENTIALS": ("cors_credentials", _str_to_bool),
    "CORS_ALLOWED_METHODS": ("cors_allowed_methods", str),
    "CORS_ALLOWED_HEADERS": ("cors_allowed_headers", str),
    "CORS_EXPOSE_HEADERS": ("cors_expose_headers", str),
    "CORS_MAX_AGE": ("cors_max_age", int),
    "CORS_REJECT_DENIED": ("cors_reject_denied", _str_to_bool),
    "HOST": ("host", str),
    "PORT": ("port", int),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "LOG_FILE": ("log_file", str),
    "LOG_MAX_BYTES": ("log_max_bytes", int),
    "LOG_BACKUP_COUNT": ("log_backup_count", int),
}


# 정수 필드 허용 범위 (벗어나면 경계값으로)
_FIELD_BOUNDS = {
    "cors_max_age": (0, 86400),
    "port": (1, 65535),
    "log_max_bytes": (1024, 1_073_741_824),
    "log_backup_count": (0, 100),
}


def _coerce(field_name: str, converter, raw):
    """원시 값을 필드 타입으로 변환. 변환할 수 없으면 None"""
    if isinstance(raw, str):
        raw = raw.strip()
    try:
        value = converter(raw)
    except (ValueError, TypeError):
        return None
    lo, hi = _FIELD_BOUNDS.get(field_name, (None, None))
    if lo is not None:
        value = min(max(value, lo), hi)
    return value


def _read_config_file(path: str) -> dict:
    """config.json 읽기. 없거나 깨졌거나 객체가 아니면 빈 dict"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(config_path: str = "config.json") -> Config:
    """설정 로드 (환경변수 > config.json > 기본값)

    환경변수가 설정돼 있으면 config.json 값은 보지 않는다.
    변환에 실패한 값은 버리고 기본값을 쓴다.
    """
    file_values = _read_config_file(config_path)
    values = {}
    for env_name, (field_name, converter) in _ENV_MAP.items():
        if env_name in os.environ:
            raw = os.environ[env_name]
        elif field_name in file_values:
            raw = file_values[field_name]
        else:
            continue
        value = _coerce(field_name, converter, raw)
        if value is not None:
            values[field_name] = value
    return Config(**values)


_cached_config: Optional[Config] = None


def get_config(config_path: str = "config.json") -> Config:
    """프로세스 전역 설정. 최초 호출 시 한 번만 읽는다"""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config(config_path)
    return _cached_config


def reset_config() -> None:
    """캐시를 비워 다음 get_config()가 다시 읽게 함 (SIGHUP 재로드, 테스트)"""
    global _cached_config
    _cached_config = None
