import pytest

from ecount_sync.exceptions import RemoteRejected
from ecount_sync.models import ExternalRef, Product
from ecount_sync.tasks import sync_product_task

from .factories import make_product
from .fakes import BUSINESS_REJECTED


@pytest.fixture()
def ecount_disabled(settings):
    settings.ECOUNT_API_USE_MOCK = False
    settings.ECOUNT_API_COMPANY_CODE = ''
    settings.ECOUNT_API_USER_ID = ''
    settings.ECOUNT_API_CERT_KEY = ''
    settings.ECOUNT_API_ZONE = ''


@pytest.fixture()
def ecount_stub(settings):
    settings.ECOUNT_API_USE_MOCK = True


class FailingClient:
    async def send(self, record):
        raise RemoteRejected('[PROD_CD] duplicate item code', details=BUSINESS_REJECTED)


# ---------------------------------------------------------------------------
# Stub client configured → product pushed, ref recorded
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_task_pushes_product_with_stub_client(ecount_stub):
    product = make_product()

    result = sync_product_task(product.pk)

    assert result == {'product_id': product.pk, 'skipped': False}
    ref = ExternalRef.objects.get(product=product)
    assert ref.external_product_id == 'CATE9-00042'


# ---------------------------------------------------------------------------
# No credentials → skipped, nothing recorded
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_task_skips_when_connector_not_configured(ecount_disabled, caplog):
    product = make_product()

    result = sync_product_task(product.pk)

    assert result == {'product_id': product.pk, 'skipped': True}
    assert not ExternalRef.objects.exists()
    assert 'ECOUNT sync is disabled' in caplog.text


# ---------------------------------------------------------------------------
# ECOUNT rejection → logged and re-raised
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_task_logs_and_reraises_rejection(monkeypatch, caplog):
    monkeypatch.setattr('ecount_sync.tasks.get_client', lambda: FailingClient())
    product = make_product()

    with pytest.raises(RemoteRejected):
        sync_product_task(product.pk)

    assert 'duplicate item code' in caplog.text
    assert 'HTTP 502' in caplog.text
    assert not ExternalRef.objects.exists()


@pytest.mark.django_db
def test_task_unknown_product(ecount_stub):
    with pytest.raises(Product.DoesNotExist):
        sync_product_task(123456)
