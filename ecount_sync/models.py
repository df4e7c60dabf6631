from django.db import models


class Product(models.Model):
    """Catalog product; only the fields the ECOUNT sync reads."""

    master_code = models.CharField(max_length=64, blank=True)
    name = models.CharField(max_length=255)
    label = models.CharField(max_length=255, blank=True)
    barcode = models.CharField(max_length=64)
    price_krw = models.PositiveIntegerField(default=0)
    release_date = models.DateField()
    description_html = models.TextField(blank=True)
    display_status = models.BooleanField(default=True)
    inventory_track = models.BooleanField(default=False)
    stock_qty = models.PositiveIntegerField(null=True, blank=True)
    category_ids = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.master_code or 'no master code'})"


class ExternalSystem(models.TextChoices):
    ECOUNT = 'ECOUNT', 'ECOUNT'


class SyncDirection(models.TextChoices):
    PUSH = 'PUSH', 'Push'
    PULL = 'PULL', 'Pull'


class SourceOfTruth(models.TextChoices):
    MASTER = 'MASTER', 'Master record'
    LEGACY = 'LEGACY', 'Legacy system'


class ExternalRef(models.Model):
    """Last known sync state of a product in an external system."""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='external_refs')
    system = models.CharField(max_length=20, choices=ExternalSystem.choices)
    external_product_id = models.CharField(max_length=64, blank=True)
    last_sync_direction = models.CharField(max_length=10, choices=SyncDirection.choices)
    last_synced_at = models.DateTimeField(null=True, blank=True)
    source_of_truth = models.CharField(max_length=10, choices=SourceOfTruth.choices,
                                       default=SourceOfTruth.MASTER)
    raw_snapshot_json = models.JSONField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['product', 'system'], name='uniq_external_ref_product_system'),
        ]

    def __str__(self):
        return f"{self.system}:{self.external_product_id} ({self.last_sync_direction})"
