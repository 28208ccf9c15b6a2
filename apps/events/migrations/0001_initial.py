from django.db import migrations, models

import apps.core.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='Title')),
                ('description', models.TextField(blank=True, help_text='HTML is allowed', verbose_name='Description')),
                ('host', models.CharField(max_length=200, verbose_name='Host')),
                ('location', models.CharField(max_length=200, verbose_name='Location')),
                ('city', models.CharField(blank=True, max_length=100, verbose_name='City')),
                ('country', models.CharField(blank=True, max_length=100, verbose_name='Country')),
                ('image_url', models.URLField(blank=True, verbose_name='Image url')),
                ('dress_code', models.CharField(blank=True, max_length=100, verbose_name='Dress code')),
                ('start_date', models.DateTimeField(verbose_name='Start')),
                ('end_date', models.DateTimeField(blank=True, null=True, verbose_name='End')),
                ('status', models.JSONField(blank=True, default=list, help_text='List of status tags, e.g. "Open to Registration" or "Waitlist".', verbose_name='Status')),
                ('capacity', models.PositiveIntegerField(blank=True, help_text='Maximum number of confirmed attendees for this event. If omitted, there is no limit.', null=True)),
                ('price', apps.core.fields.MonetaryField(blank=True, null=True)),
                ('currency', models.CharField(blank=True, default='TRY', max_length=3)),
                ('price_charged_via_app', models.BooleanField(default=False, help_text='When checked (for cost bearing events), members pay by card in the app before they are registered. Otherwise they register first and pay manually.', verbose_name='Price charged via app')),
                ('is_restricted', models.BooleanField(default=False, help_text='Invite-only event. The capacity does not put invitees on the waiting list.', verbose_name='Restricted')),
                ('rsvp_date', models.DateTimeField(blank=True, null=True, verbose_name='RSVP date')),
                ('open_for_networking', models.BooleanField(default=False, verbose_name='Open for networking')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
            ],
            options={
                'verbose_name': 'event',
                'verbose_name_plural': 'events',
                'ordering': ('start_date',),
                'indexes': [models.Index(fields=['open_for_networking', 'start_date'], name='idx_networking_start_date')],
            },
        ),
    ]
