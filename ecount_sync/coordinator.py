import json
import logging
from dataclasses import dataclass

from asgiref.sync import sync_to_async
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from .exceptions import ValidationError
from .models import ExternalRef, ExternalSystem, SourceOfTruth, SyncDirection
from .payload import build_bulk_datas
from .snapshot import ProductSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOutcome:
    skipped: bool


def to_json_value(value):
    """JSON-safe copy of ``value``; None if it cannot be serialised."""
    try:
        return json.loads(json.dumps(value, cls=DjangoJSONEncoder))
    except (TypeError, ValueError):
        logger.warning("ECOUNT response is not JSON serialisable – storing a null audit response.")
        return None


class SyncCoordinator:
    """
    Pushes a product to ECOUNT and records the result.

    ``client`` is an EcountClient, a StubEcountClient or None when the
    connector is disabled. Call ``sync`` inside the transaction that changes
    the product: a failed push raises and the transaction rolls back.
    """

    def __init__(self, client):
        self.client = client

    async def sync(self, product_id: int, snapshot: ProductSnapshot) -> SyncOutcome:
        if self.client is None:
            return SyncOutcome(skipped=True)

        if not snapshot.master_code:
            raise ValidationError("Product has no master code – ECOUNT sync is not possible.")

        payload = build_bulk_datas(snapshot)
        response = await self.client.send(payload)
        await sync_to_async(self._upsert_ref, thread_sensitive=True)(product_id, payload, response)
        return SyncOutcome(skipped=False)

    @staticmethod
    def _upsert_ref(product_id: int, payload: dict, response) -> ExternalRef:
        ref, created = ExternalRef.objects.update_or_create(
            product_id=product_id,
            system=ExternalSystem.ECOUNT,
            defaults={
                'external_product_id': payload['PROD_CD'],
                'last_sync_direction': SyncDirection.PUSH,
                'last_synced_at': timezone.now(),
                'source_of_truth': SourceOfTruth.MASTER,
                'raw_snapshot_json': {
                    'request': payload,
                    'response': to_json_value(response),
                },
            },
        )
        logger.info("ECOUNT ref for product %s %s.", product_id, 'created' if created else 'updated')
        return ref
