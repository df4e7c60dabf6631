import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('master_code', models.CharField(blank=True, max_length=64)),
                ('name', models.CharField(max_length=255)),
                ('label', models.CharField(blank=True, max_length=255)),
                ('barcode', models.CharField(max_length=64)),
                ('price_krw', models.PositiveIntegerField(default=0)),
                ('release_date', models.DateField()),
                ('description_html', models.TextField(blank=True)),
                ('display_status', models.BooleanField(default=True)),
                ('inventory_track', models.BooleanField(default=False)),
                ('stock_qty', models.PositiveIntegerField(blank=True, null=True)),
                ('category_ids', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='ExternalRef',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('system', models.CharField(choices=[('ECOUNT', 'ECOUNT')], max_length=20)),
                ('external_product_id', models.CharField(blank=True, max_length=64)),
                ('last_sync_direction', models.CharField(choices=[('PUSH', 'Push'), ('PULL', 'Pull')], max_length=10)),
                ('last_synced_at', models.DateTimeField(blank=True, null=True)),
                ('source_of_truth', models.CharField(choices=[('MASTER', 'Master record'), ('LEGACY', 'Legacy system')], default='MASTER', max_length=10)),
                ('raw_snapshot_json', models.JSONField(blank=True, null=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='external_refs', to='ecount_sync.product')),
            ],
        ),
        migrations.AddConstraint(
            model_name='externalref',
            constraint=models.UniqueConstraint(fields=('product', 'system'), name='uniq_external_ref_product_system'),
        ),
    ]
