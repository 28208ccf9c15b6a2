import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('events', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_waiting_list', models.BooleanField(default=False, verbose_name='On waiting list')),
                ('refund_requested', models.BooleanField(default=False, verbose_name='Refund requested')),
                ('refund_requested_at', models.DateTimeField(blank=True, null=True, verbose_name='Refund requested at')),
                ('refund_approved', models.BooleanField(blank=True, null=True, verbose_name='Refund approved')),
                ('refund_processed', models.BooleanField(default=False, verbose_name='Cancelled')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True, verbose_name='Cancelled at')),
                ('payment_status', models.CharField(blank=True, choices=[('', 'No payment'), ('pending', 'Payment pending'), ('completed', 'Payment completed')], default='', max_length=16, verbose_name='Payment status')),
                ('terms_accepted', models.BooleanField(default=False, verbose_name='Terms accepted')),
                ('cancellation_policy_accepted', models.BooleanField(default=False, verbose_name='Cancellation policy accepted')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Cancelled by')),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to='events.event')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'registration',
                'verbose_name_plural': 'registrations',
                'indexes': [
                    models.Index(fields=['user', 'event', 'refund_processed', 'created_at'], name='idx_user_event_active_created'),
                    models.Index(fields=['event', 'refund_processed', 'is_waiting_list'], name='idx_event_active_waiting'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('refund_processed', False)), fields=('event', 'user'), name='one_active_registration_per_user_per_event'),
                    models.CheckConstraint(condition=models.Q(('refund_processed', False), ('cancelled_at__isnull', False), _connector='OR'), name='cancelled_registration_has_timestamp'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PlusOneGuest',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('guest_name', models.CharField(max_length=200, verbose_name='Name')),
                ('guest_email', models.EmailField(max_length=254, verbose_name='E-mail address')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('registration', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='plus_one_guest', to='registrations.registration')),
            ],
            options={
                'verbose_name': '+1 guest',
                'verbose_name_plural': '+1 guests',
            },
        ),
        migrations.CreateModel(
            name='Attendance',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('verified_attendance', models.BooleanField(default=False, verbose_name='Attendance verified')),
                ('verified_at', models.DateTimeField(blank=True, null=True, verbose_name='Verified at')),
                ('barcode', models.CharField(blank=True, default=None, max_length=64, null=True, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='events.event')),
                ('marked_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Marked by')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to=settings.AUTH_USER_MODEL)),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Verified by')),
            ],
            options={
                'verbose_name': 'attendance',
                'verbose_name_plural': 'attendances',
                'constraints': [
                    models.UniqueConstraint(fields=('event', 'user'), name='one_attendance_per_user_per_event'),
                ],
            },
        ),
    ]
