from django.db import migrations, models


class Migration(migrations.Migration):
    """
    Indexes for the admin order list and status page lookups:
      - orders_order.status          (WHERE status = ...)
      - orders_order.created_at      (ORDER BY created_at DESC)
      - orders_order.customer_email  (customer order history)
    """

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.AddIndex(
            model_name='order',
            index=models.Index(fields=['status'], name='orders_order_status_idx'),
        ),
        migrations.AddIndex(
            model_name='order',
            index=models.Index(fields=['created_at'], name='orders_order_created_at_idx'),
        ),
        migrations.AddIndex(
            model_name='order',
            index=models.Index(fields=['customer_email'], name='orders_order_email_idx'),
        ),
    ]
