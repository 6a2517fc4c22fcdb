import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # 스로틀 카운터와 예약 핸들 캐시가 테스트 사이에 새지 않도록
    cache.clear()
    yield
    cache.clear()
