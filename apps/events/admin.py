import datetime

import import_export.fields
import import_export.formats.base_formats
import import_export.resources
from django.contrib import admin, messages
from django.http import HttpResponse
from django.utils.text import slugify
from django.utils.translation import gettext_lazy as _
from reversion.admin import VersionAdmin

from apps.payments.admin import EventPaymentsResource
from apps.registrations.models import Registration

from .models import Event


class EventRosterResource(import_export.resources.ModelResource):
    """ Resource that can export the registrations for a single event. """

    id = import_export.fields.Field(attribute='pk')
    first_name = import_export.fields.Field(attribute='user__first_name')
    last_name = import_export.fields.Field(attribute='user__last_name')
    email = import_export.fields.Field(attribute='user__email')
    state = import_export.fields.Field()
    created_at = import_export.fields.Field(attribute='created_at')
    payment_status = import_export.fields.Field(attribute='get_payment_status_display')
    guest_name = import_export.fields.Field(attribute='plus_one_guest__guest_name')
    guest_email = import_export.fields.Field(attribute='plus_one_guest__guest_email')

    def __init__(self, event):
        super().__init__()
        self.event = event

    def dehydrate_state(self, registration):
        return str(registration.state.label)

    def get_queryset(self):
        return (
            super().get_queryset()
            .filter(event=self.event)
            .select_related('user', 'plus_one_guest')
            .in_storage_order()
        )

    class Meta:
        model = Registration
        fields = (
            'id', 'first_name', 'last_name', 'email', 'state', 'created_at', 'payment_status',
            'guest_name', 'guest_email',
        )


@admin.register(Event)
class EventAdmin(VersionAdmin):
    list_display = ('title', 'start_date', 'end_date', 'location', 'capacity', 'confirmed_count')
    list_filter = ('is_restricted', 'price_charged_via_app', 'open_for_networking')
    search_fields = ('title', 'host', 'location', 'city')
    actions = ['export_active_registrations', 'export_payments']

    ordering = ('start_date',)
    date_hierarchy = 'start_date'

    def get_queryset(self, request):
        return super().get_queryset(request).with_confirmed_count()

    def confirmed_count(self, obj):
        return obj.confirmed_count
    confirmed_count.short_description = _("Confirmed")
    confirmed_count.admin_order_field = 'confirmed_count'

    def export(self, request, queryset, resource_class, get_rows):
        try:
            event = queryset.get()
        except Event.MultipleObjectsReturned:
            self.message_user(
                request=request, level=messages.ERROR,
                message=_("Only one event can be exported at the same time"),
            )
            return None

        resource = resource_class(event)
        file_format = import_export.formats.base_formats.CSV()
        export_data = file_format.export_data(resource.export(get_rows(resource)))
        response = HttpResponse(export_data, content_type=file_format.get_content_type())
        response['Content-Disposition'] = 'attachment; filename="{}-{}.{}"'.format(
            slugify(event.title), datetime.datetime.now().strftime('%Y-%m-%d'), file_format.get_extension(),
        )
        return response

    def export_active_registrations(self, request, queryset):
        return self.export(request, queryset, EventRosterResource, lambda r: r.get_queryset().active())
    export_active_registrations.short_description = _("Export active registrations")

    def export_payments(self, request, queryset):
        return self.export(request, queryset, EventPaymentsResource, lambda r: r.get_queryset())
    export_payments.short_description = _("Export payments")
