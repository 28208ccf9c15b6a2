import django.db.models.deletion
from django.db import migrations, models

import apps.core.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('registrations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', apps.core.fields.MonetaryField()),
                ('currency', models.CharField(default='TRY', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'Payment in progress'), ('completed', 'Payment completed'), ('failed', 'Payment failed/expired/aborted/etc.'), ('refunded', 'Payment refunded')], default='pending', max_length=16, verbose_name='Status')),
                ('payment_provider', models.CharField(choices=[('qnb', 'QNB'), ('sipay', 'Sipay'), ('mollie', 'Mollie')], max_length=16, verbose_name='Payment provider')),
                ('provider_reference', models.CharField(blank=True, default=None, max_length=64, null=True, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('timestamp', models.DateTimeField(blank=True, null=True, verbose_name='Transaction date/time')),
                ('refunded_at', models.DateTimeField(blank=True, null=True, verbose_name='Refunded at')),
                ('registration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'payment',
                'verbose_name_plural': 'payments',
                'base_manager_name': 'objects',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('provider_reference', ''), _negated=True), name='provider_reference_cannot_be_empty'),
                    models.CheckConstraint(condition=models.Q(('refunded_at__isnull', True), ('status', 'refunded'), _connector='OR'), name='only_refunded_payment_has_refunded_at'),
                ],
            },
        ),
    ]
