from django.db import migrations, models


class Migration(migrations.Migration):
    """
    Indexes for the listing and import paths:
      - catalog_product.brand      (brand list, brand filter)
      - catalog_product.quantity   (in-stock views)
      - catalog_product.is_active
    external_id and category_id are already indexed by their unique / FK constraints.
    """

    dependencies = [
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.AddIndex(
            model_name='product',
            index=models.Index(fields=['brand'], name='catalog_product_brand_idx'),
        ),
        migrations.AddIndex(
            model_name='product',
            index=models.Index(fields=['quantity'], name='catalog_product_qty_idx'),
        ),
        migrations.AddIndex(
            model_name='product',
            index=models.Index(fields=['is_active'], name='catalog_product_active_idx'),
        ),
    ]
