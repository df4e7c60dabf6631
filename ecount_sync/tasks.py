import logging

from celery import shared_task

from .coordinator import SyncCoordinator
from .ecount_client import get_client
from .exceptions import EcountError
from .services import resync_product

logger = logging.getLogger(__name__)


@shared_task(bind=True, name='ecount_sync.sync_product')
def sync_product_task(self, product_id):
    """
    Push one product to ECOUNT and record the result.

    Used for manual retries of products whose earlier push failed or never
    ran. ECOUNT errors are logged and re-raised; the task itself is not retried.
    """
    coordinator = SyncCoordinator(get_client())
    try:
        outcome = resync_product(product_id, coordinator)
    except EcountError as exc:
        logger.error("ECOUNT sync of product %s failed (HTTP %d): %s", product_id, exc.http_status, exc)
        raise

    if outcome.skipped:
        logger.info("ECOUNT connector not configured – product %s not pushed.", product_id)
    return {'product_id': product_id, 'skipped': outcome.skipped}
