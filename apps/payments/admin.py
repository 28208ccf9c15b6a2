import import_export.fields
import import_export.resources
import import_export.widgets
from django.contrib import admin
from django.forms.fields import DateTimeField
from reversion.admin import VersionAdmin

from .models import Payment


class EventPaymentsResource(import_export.resources.ModelResource):
    """ Resource that can export payments for a single event. """

    id = import_export.fields.Field(attribute='pk')
    registration_id = import_export.fields.Field(attribute='registration__id')
    name = import_export.fields.Field(attribute='registration__user__full_name')
    amount = import_export.fields.Field(attribute='amount', widget=import_export.widgets.DecimalWidget())
    currency = import_export.fields.Field(attribute='currency')
    status = import_export.fields.Field(attribute='get_status_display')

    payment_provider = import_export.fields.Field(attribute='payment_provider')
    provider_reference = import_export.fields.Field(attribute='provider_reference')

    created_at = import_export.fields.Field(attribute='created_at')
    timestamp = import_export.fields.Field(attribute='timestamp')
    refunded_at = import_export.fields.Field(attribute='refunded_at')

    def __init__(self, event):
        super().__init__()
        self.event = event

    def get_queryset(self):
        return (
            super().get_queryset()
            .filter(registration__event=self.event)
            .select_related('registration__user')
            .order_by('created_at')
        )

    class Meta:
        model = Payment
        fields = (
            'id', 'registration_id', 'name', 'amount', 'currency', 'status', 'payment_provider',
            'provider_reference', 'created_at', 'timestamp', 'refunded_at',
        )


@admin.register(Payment)
class PaymentAdmin(VersionAdmin):
    list_display = ('registration', 'created_at', 'timestamp', 'amount', 'currency', 'status', 'payment_provider')
    list_filter = ('status', 'payment_provider')
    raw_id_fields = ('registration',)

    def get_readonly_fields(self, request, obj=None):
        fields = ['created_at', 'updated_at', 'refunded_at']
        if obj and obj.provider_reference:
            # Card payments are owned by the provider, refunds go through the refund approval
            fields += ['amount', 'currency', 'status', 'payment_provider', 'provider_reference', 'timestamp']
        return fields

    def has_delete_permission(self, request, obj=None):
        # Disallow deleting provider payments
        if obj and obj.provider_reference:
            return False
        return super().has_delete_permission(request, obj)

    def get_queryset(self, *args, **kwargs):
        qs = super().get_queryset(*args, **kwargs)
        return qs.select_related('registration', 'registration__user', 'registration__event')

    def formfield_for_dbfield(self, db_field, **kwargs):
        if db_field.name == 'timestamp':
            # This uses a regular datetime input instead of split, but with the datewidget so you get just a date
            # picker, but override the format to include a time component so you *can* still input a time.
            kwargs['form_class'] = DateTimeField
            kwargs['widget'] = admin.widgets.AdminDateWidget(format='%Y-%m-%d %H:%M:%S')

        return super().formfield_for_dbfield(db_field, **kwargs)


class PaymentInline(admin.TabularInline):
    model = Payment
    fk_name = 'registration'

    # Edit and delete can only be done through the PaymentAdmin. This uses readonly fields, since removing change
    # permission also removes the change link.
    readonly_fields = ['created_at', 'timestamp', 'amount', 'currency', 'status', 'payment_provider',
                       'provider_reference', 'refunded_at']
    can_delete = False
    show_change_link = True

    def has_add_permission(self, *args, **kwargs):
        return False
