from django.db import migrations, models

import orders.utils


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_id', models.CharField(default=orders.utils.gen_order_id, max_length=64, unique=True)),
                ('order_number', models.CharField(blank=True, max_length=32, unique=True)),
                ('customer_id', models.CharField(db_index=True, max_length=64)),
                ('customer_name', models.CharField(blank=True, default='', max_length=128)),
                ('customer_phone', models.CharField(blank=True, default='', max_length=20)),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('picked_up', 'Picked up'), ('confirmed', 'Confirmed'), ('in_progress', 'In progress'), ('ready', 'Ready'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=16)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('refunded', 'Refunded')], db_index=True, default='pending', max_length=16)),
                ('payment_method', models.CharField(blank=True, choices=[('online', 'Online'), ('pos', 'POS'), ('transfer', 'Transfer'), ('cash', 'Cash')], default='', max_length=16)),
                ('payment_reference', models.CharField(blank=True, db_index=True, default='', max_length=128)),
                ('total_amount', models.PositiveIntegerField(default=0)),
                ('discount_amount', models.PositiveIntegerField(default=0)),
                ('final_amount', models.PositiveIntegerField(default=0)),
                ('amount_paid', models.PositiveIntegerField(blank=True, null=True)),
                ('delivery_type', models.CharField(choices=[('pickup', 'Pickup'), ('delivery', 'Delivery')], default='pickup', max_length=16)),
                ('requested_date_time', models.CharField(blank=True, default='', max_length=64)),
                ('customer_notes', models.TextField(blank=True, default='')),
                ('order_history', models.JSONField(blank=True, default=list)),
                ('actual_pickup_time', models.DateTimeField(blank=True, null=True)),
                ('actual_delivery_time', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ('-created_at',),
            },
        ),
    ]
