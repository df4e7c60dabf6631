import logging

from asgiref.sync import async_to_sync
from django.db import transaction
from django.db.models import Exists, OuterRef

from .coordinator import SyncCoordinator, SyncOutcome
from .models import ExternalRef, ExternalSystem, Product, SyncDirection
from .snapshot import ProductSnapshot

logger = logging.getLogger(__name__)

PENDING_LIMIT = 15


def save_product(product: Product, coordinator: SyncCoordinator) -> SyncOutcome:
    """
    Save ``product`` and push it to ECOUNT in one transaction.

    If the push fails the product change is rolled back and the ECOUNT error
    propagates, so the catalog never holds edits ECOUNT did not accept.
    """
    with transaction.atomic():
        product.save()
        outcome = async_to_sync(coordinator.sync)(product.pk, ProductSnapshot.from_product(product))
    return outcome


def resync_product(product_id: int, coordinator: SyncCoordinator) -> SyncOutcome:
    """Push an existing product again (manual retry from the control center)."""
    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        outcome = async_to_sync(coordinator.sync)(product.pk, ProductSnapshot.from_product(product))
    logger.info("Product %s resync finished (skipped=%s).", product_id, outcome.skipped)
    return outcome


def sync_status(limit: int = PENDING_LIMIT) -> dict:
    """
    Summary for the ECOUNT control panel.

    A product is pending when it was never pushed, or its ECOUNT ref carries
    no sync time or a direction other than PUSH.
    """
    synced_refs = ExternalRef.objects.filter(
        product=OuterRef('pk'),
        system=ExternalSystem.ECOUNT,
        last_synced_at__isnull=False,
        last_sync_direction=SyncDirection.PUSH,
    )
    pending = (
        Product.objects
        .annotate(is_synced=Exists(synced_refs))
        .filter(is_synced=False)
        .order_by('-created_at')[:limit]
    )

    items = []
    for product in pending:
        ref = product.external_refs.filter(system=ExternalSystem.ECOUNT).first()
        items.append({
            'id': product.pk,
            'name': product.name,
            'master_code': product.master_code or None,
            'created_at': product.created_at,
            'last_synced_at': ref.last_synced_at if ref else None,
            'last_sync_direction': ref.last_sync_direction if ref else None,
        })

    return {
        'total': Product.objects.count(),
        'synced': ExternalRef.objects.filter(system=ExternalSystem.ECOUNT).count(),
        'pending': items,
    }
