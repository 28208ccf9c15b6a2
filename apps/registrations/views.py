import reversion
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.functional import cached_property
from django.utils.translation import gettext_lazy as _
from django.views import View

from apps.events.models import Event
from apps.people.models import Member
from clubhouse.common.views import AdminRequiredMixin, AlertActionMixin, ApiLoginRequiredMixin, alert_response

from .models import Registration
from .services import AppPaymentRequired, AttendanceService, PlusOneService, RegistrationService, RosterService


def registration_json(registration):
    user = registration.user
    return {
        'id': registration.pk,
        'user_id': user.pk,
        'name': user.full_name,
        'email': user.email,
        'state': registration.state.v,
        'payment_status': registration.payment_status,
        'created_at': registration.created_at.isoformat(),
    }


def guest_json(guest):
    if guest is None:
        return None
    return {'name': guest.guest_name, 'email': guest.guest_email}


def posted_member(request):
    try:
        pk = int(request.POST.get('user', ''))
    except ValueError:
        raise ValidationError(_("No member selected"), code='no_member')
    return get_object_or_404(Member, pk=pk)


class EventActionView(ApiLoginRequiredMixin, AlertActionMixin, View):
    http_method_names = ['post']
    error_titles = {
        'registration_closed': _("Registration closed"),
        'plus_one_not_allowed': _("+1 not available"),
    }

    @cached_property
    def event(self):
        return get_object_or_404(Event, pk=self.kwargs['event_id'])

    def active_registration(self):
        registration = Registration.objects.active().filter(event=self.event, user=self.request.user).first()
        if registration is None:
            raise ValidationError(_("You are not registered for this event"), code='not_registered')
        return registration


class Register(EventActionView):
    failure_message = _("Failed to register for the event, please try again")

    def perform(self, request, *args, **kwargs):
        try:
            with reversion.create_revision():
                reversion.set_user(request.user)
                reversion.set_comment(_("Registered via app."))
                registration = RegistrationService.register(self.event, request.user)
        except AppPaymentRequired as ex:
            return alert_response(_("Payment required"), " ".join(ex.messages), status=409, payment_required=True)

        if registration.is_waiting_list:
            title, message = _("Waiting list"), _("You have been added to the waiting list for this event.")
        elif self.event.requires_manual_payment:
            title = _("Payment information")
            message = _("You are registered. This is a cost bearing event, the payment is collected separately. "
                        "Please check the event details for payment instructions.")
        else:
            title, message = _("Success"), _("You are registered for this event.")
        return alert_response(title, message, state=registration.state.v)


class Cancel(EventActionView):
    failure_message = _("Failed to cancel your registration, please try again")

    def perform(self, request, *args, **kwargs):
        registration = self.active_registration()
        with reversion.create_revision():
            reversion.set_user(request.user)
            reversion.set_comment(_("Cancelled via app."))
            registration = RegistrationService.cancel(registration, request.user)

        if registration.state.PENDING_REFUND:
            title = _("Refund requested")
            message = _("Your cancellation request was submitted. Your registration will be cancelled once the "
                        "refund is approved.")
        else:
            title, message = _("Cancelled"), _("Your registration was cancelled.")
        return alert_response(title, message, state=registration.state.v)


class AddPlusOne(EventActionView):
    failure_message = _("Failed to add your guest, please try again")

    def perform(self, request, *args, **kwargs):
        with reversion.create_revision():
            reversion.set_user(request.user)
            reversion.set_comment(_("+1 guest added via app."))
            guest = PlusOneService.add_guest(
                self.event, request.user, request.POST.get('name'), request.POST.get('email'))
        return alert_response(_("Success"), _("Your +1 guest was added."), guest=guest_json(guest))


class RemovePlusOne(EventActionView):
    failure_message = _("Failed to remove your guest, please try again")

    def perform(self, request, *args, **kwargs):
        PlusOneService.remove_guest(self.active_registration())
        return alert_response(_("Success"), _("Your +1 guest was removed."))


class Barcode(ApiLoginRequiredMixin, View):
    """ Returns the check-in barcode of the current member for an event. """

    def get(self, request, event_id):
        event = get_object_or_404(Event, pk=event_id)
        try:
            barcode = AttendanceService.get_or_create_barcode(event, request.user)
        except ValidationError as ex:
            return alert_response(_("Error"), " ".join(ex.messages), status=400)
        return JsonResponse({'barcode': barcode, 'event_id': event.pk})


class Roster(AdminRequiredMixin, View):
    def get(self, request, event_id):
        event = get_object_or_404(Event, pk=event_id)
        roster = RosterService.roster(event)

        def entry(r, **extra):
            return dict(registration_json(r), position=r.position, **extra)

        return JsonResponse({
            'event_id': event.pk,
            'confirmed': [
                entry(r, verified_attendance=r.verified_attendance, plus_one=guest_json(r.plus_one))
                for r in roster.confirmed
            ],
            'waiting_list': [entry(r) for r in roster.waiting_list],
            'cancelled': [
                entry(r, self_cancelled=r.self_cancelled, cancelled_by=r.cancelled_by_name,
                      cancelled_at=r.cancelled_at.isoformat())
                for r in roster.cancelled
            ],
            'stats': {
                'confirmed': roster.confirmed_count,
                'verified': roster.verified_count,
                'unverified': roster.unverified_count,
                'waiting_list': roster.waiting_list_count,
                'cancelled': roster.cancelled_count,
                'plus_ones': roster.plus_one_count,
            },
        })


class RosterSearch(AdminRequiredMixin, View):
    def get(self, request, event_id):
        event = get_object_or_404(Event, pk=event_id)
        members = RosterService.search_members(event, request.GET.get('q', ''))
        return JsonResponse({
            'results': [{'id': m.pk, 'name': m.full_name, 'email': m.email} for m in members],
        })


class RosterActionView(AdminRequiredMixin, EventActionView):
    pass


class RosterAdd(RosterActionView):
    failure_message = _("Failed to add the member, please try again")

    def perform(self, request, *args, **kwargs):
        member = posted_member(request)
        with reversion.create_revision():
            reversion.set_user(request.user)
            reversion.set_comment(_("Added to the event by an admin."))
            registration = RosterService.add_member(self.event, member)
        return alert_response(_("Success"), _("{} was added to the event.").format(member.full_name),
                              registration=registration_json(registration))


class RosterRemove(RosterActionView):
    failure_message = _("Failed to remove the member, please try again")

    def perform(self, request, *args, **kwargs):
        member = posted_member(request)
        with reversion.create_revision():
            reversion.set_user(request.user)
            reversion.set_comment(_("Removed from the event by an admin."))
            RosterService.remove_member(self.event, member, request.user)
        return alert_response(_("Success"), _("{} was removed from the event.").format(member.full_name))


class RosterAttendance(RosterActionView):
    failure_message = _("Failed to update attendance, please try again")

    def perform(self, request, *args, **kwargs):
        member = posted_member(request)
        verified = request.POST.get('verified') in ('1', 'true', 'on')
        with reversion.create_revision():
            reversion.set_user(request.user)
            attendance = AttendanceService.set_verified(self.event, member, verified, by=request.user)
        return alert_response(_("Success"), _("Attendance updated."),
                              verified_attendance=attendance.verified_attendance)


class Scan(AdminRequiredMixin, AlertActionMixin, View):
    """ Verifies attendance from a scanned barcode. Errors are returned as data, the scanner shows them inline. """

    http_method_names = ['post']

    def perform(self, request, *args, **kwargs):
        with reversion.create_revision():
            reversion.set_user(request.user)
            result = AttendanceService.verify_by_barcode(request.POST.get('barcode', ''), request.user)
        return JsonResponse(result, status=200 if result['success'] else 400)
