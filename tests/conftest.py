import pytest

from ecount_sync.conf import EcountConfig
from ecount_sync.ecount_client import get_client

from .fakes import BASE_URL


@pytest.fixture()
def ecount_config():
    return EcountConfig(
        company_code='600000',
        user_id='SYNCUSER',
        api_cert_key='cert-key',
        zone='CC',
        base_url=BASE_URL,
        timeout=1.0,
    )


@pytest.fixture(autouse=True)
def reset_client_cache():
    get_client.cache_clear()
    yield
    get_client.cache_clear()
