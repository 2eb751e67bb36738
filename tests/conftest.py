import os
import sys
import pytest

# 프로젝트 루트를 path에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import reset_config
from logging_config import reset_logging


@pytest.fixture(autouse=True)
def _fresh_state():
    """설정 캐시와 로깅 핸들러를 테스트마다 초기화"""
    reset_config()
    yield
    reset_config()
    reset_logging()
