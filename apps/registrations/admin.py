import reversion
from django.contrib import admin, messages
from django.db import transaction
from django.db.models.functions import Concat
from django.http import HttpResponse
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from hijack.contrib.admin import HijackUserAdminMixin
from reversion.admin import VersionAdmin

from apps.payments.admin import PaymentInline
from apps.people.models import Member

from .models import Attendance, PlusOneGuest, Registration


class PlusOneGuestInline(admin.StackedInline):
    model = PlusOneGuest
    extra = 0


class StateListFilter(admin.SimpleListFilter):
    """ Filter on the derived registration state, which is not stored as a field. """

    title = _('State')
    parameter_name = 'state'

    def lookups(self, request, model_admin):
        return [(c.v, c.label) for c in Registration.states.constants]

    def queryset(self, request, queryset):
        states = Registration.states
        lookups = {
            states.CONFIRMED.v: lambda qs: qs.confirmed().filter(refund_requested=False),
            states.WAITINGLIST.v: lambda qs: qs.waiting_list().filter(refund_requested=False),
            states.PENDING_REFUND.v: lambda qs: qs.pending_refund(),
            states.CANCELLED.v: lambda qs: qs.cancelled(),
        }
        lookup = lookups.get(self.value())
        return lookup(queryset) if lookup else queryset


@admin.register(Registration)
class RegistrationAdmin(HijackUserAdminMixin, VersionAdmin):
    list_display = ('event', 'user_name', 'state_display', 'created_at', 'payment_status')
    search_fields = ['user__first_name', 'user__last_name', 'user__email', 'event__title']
    list_select_related = ['user', 'event']
    list_filter = [StateListFilter, 'event', 'payment_status']
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('user', 'cancelled_by')

    inlines = [PlusOneGuestInline, PaymentInline]

    actions = ['promote_to_confirmed', 'finalize_cancellation', 'make_mailing_list']

    def get_hijack_user(self, obj):
        return obj.user

    def user_name(self, obj):
        return obj.user.full_name
    user_name.short_description = _("User")
    user_name.admin_order_field = Concat('user__first_name', 'user__last_name')

    def state_display(self, obj):
        return obj.state.label
    state_display.short_description = _("State")

    def promote_to_confirmed(self, request, queryset):
        """ Moves waiting list registrations to confirmed. There is no automatic promotion. """
        with transaction.atomic():
            if queryset.exclude(pk__in=queryset.waiting_list()).exists():
                self.message_user(request, _('Not all selected registrations are on the waiting list'),
                                  messages.ERROR)
                return
            with reversion.create_revision():
                reversion.set_user(request.user)
                reversion.set_comment(_("Promoted from the waiting list via admin."))
                for registration in queryset:
                    registration.is_waiting_list = False
                    registration.save()
    promote_to_confirmed.short_description = _('Promote waiting list registrations to confirmed')

    def finalize_cancellation(self, request, queryset):
        with transaction.atomic():
            if queryset.exclude(pk__in=queryset.active()).exists():
                self.message_user(request, _('Not all selected registrations are active'), messages.ERROR)
                return
            with reversion.create_revision():
                reversion.set_user(request.user)
                reversion.set_comment(_("Cancelled via admin."))
                now = timezone.now()
                for registration in queryset:
                    registration.finalize_cancellation(by=request.user, at=now)
                    registration.save()
    finalize_cancellation.short_description = _('Cancel selected registrations')

    def make_mailing_list(self, request, queryset):
        users = Member.objects.filter(registrations__in=queryset).distinct()
        return HttpResponse(
            "\n".join("{} <{}>,".format(u.full_name, u.email) for u in users),
            content_type="text/plain; charset=utf-8",
        )


@admin.register(Attendance)
class AttendanceAdmin(VersionAdmin):
    list_display = ('event', 'user', 'verified_attendance', 'verified_at', 'verified_by')
    list_filter = ('verified_attendance', 'event')
    list_select_related = ['user', 'event', 'verified_by']
    search_fields = ['user__first_name', 'user__last_name', 'user__email', 'event__title']
    raw_id_fields = ('user', 'verified_by', 'marked_by')
    readonly_fields = ('barcode', 'created_at', 'updated_at')
