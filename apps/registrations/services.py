import logging
import re
import secrets
from collections import namedtuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.mail import EmailMessage
from django.core.validators import validate_email
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.translation import gettext as _

from apps.events.models import Event
from apps.people.models import Member

from .models import Attendance, PlusOneGuest, Registration

logger = logging.getLogger(__name__)


class AppPaymentRequired(ValidationError):
    """
    Raised when registering for an event that must be paid through the app.

    The client should start the card payment flow instead, the registration is created once the payment succeeds.
    """


class RegistrationService:
    @staticmethod
    def register(event, user):
        """
        Registers the user for the event, or re-registers a previously cancelled registration.

        The registration ends up confirmed, or on the waiting list when the event has a waitlist or its capacity is
        reached (restricted events ignore the capacity). The event row is locked while counting, so concurrent
        registrations cannot all be admitted on the same count.

        Raises a ValidationError when the event is closed for registration and AppPaymentRequired when the event
        must be paid through the app first.
        """
        with transaction.atomic():
            event = Event.objects.select_for_update().get(pk=event.pk)

            if event.registration_closed:
                raise ValidationError(_("This event is not accepting registrations anymore"),
                                      code='registration_closed')
            if event.requires_app_payment:
                raise AppPaymentRequired(_("This event must be paid in the app to register"),
                                         code='payment_required')

            # Do not count the user's own confirmed registration, so re-registering does not push it out
            count = Event.objects.confirmed_count_for(event, exclude_user=user)
            at_capacity = not event.is_restricted and event.is_at_capacity(count)

            registration = Registration.objects.current_for(event, user).first()
            if registration is None:
                registration = Registration(event=event, user=user)
            registration.reset(is_waiting_list=event.has_waitlist or at_capacity)
            registration.save()

            user.mark_joined_event()

            if not registration.is_waiting_list:
                transaction.on_commit(lambda: RegistrationNotifyService.notify_confirmed(registration))

        logger.info("Registered %s for event %s (%s)", user, event.pk, registration.state.v)
        return registration

    @staticmethod
    def cancel(registration, user):
        """
        Cancels a registration on behalf of its own member.

        For events paid through the app, a confirmed registration is not cancelled right away but gets a refund
        request, which an admin must approve or reject. Asking again while a request is pending changes nothing.
        Everything else is cancelled immediately.
        """
        with transaction.atomic():
            registration = Registration.objects.select_for_update().select_related('event').get(pk=registration.pk)

            if registration.user_id != user.pk:
                raise ValidationError(_("You can only cancel your own registration"), code='not_owner')
            if not registration.is_active:
                raise ValidationError(_("This registration was already cancelled"), code='not_registered')

            now = timezone.now()
            if registration.event.requires_app_payment and not registration.is_waiting_list:
                if registration.refund_requested:
                    return registration
                registration.refund_requested = True
                registration.refund_requested_at = now
            else:
                registration.finalize_cancellation(by=user, at=now)
            registration.save()

        logger.info("Cancellation by %s for event %s (%s)", user, registration.event_id, registration.state.v)
        return registration


class Roster(namedtuple('Roster', ('confirmed', 'waiting_list', 'cancelled'))):
    """ The three lists of registrations shown to admins for a single event. """

    @property
    def confirmed_count(self):
        return len(self.confirmed)

    @property
    def waiting_list_count(self):
        return len(self.waiting_list)

    @property
    def cancelled_count(self):
        return len(self.cancelled)

    @property
    def verified_count(self):
        return sum(1 for r in self.confirmed if r.verified_attendance)

    @property
    def unverified_count(self):
        return self.confirmed_count - self.verified_count

    @property
    def plus_one_count(self):
        return sum(1 for r in self.confirmed if r.plus_one is not None)


def _plus_one_of(registration):
    try:
        return registration.plus_one_guest
    except PlusOneGuest.DoesNotExist:
        return None


class RosterService:
    @staticmethod
    def roster(event):
        """
        Returns the Roster for the given event.

        The confirmed and waiting lists contain the active registrations in storage order, each annotated with its
        1-based position. Cancelled registrations are only listed for members that have no active registration, with
        their most recent cancellation only. Confirmed registrations are annotated with verified_attendance and
        plus_one (the guest or None), cancelled ones with cancelled_by_name (None for self-cancellations).
        """
        registrations = list(
            Registration.objects
            .filter(event=event)
            .select_related('user', 'cancelled_by', 'plus_one_guest')
            .in_storage_order()
        )

        confirmed = [r for r in registrations if r.is_active and not r.is_waiting_list]
        waiting_list = [r for r in registrations if r.is_active and r.is_waiting_list]

        active_users = {r.user_id for r in registrations if r.is_active}
        latest_cancelled = {}
        for r in registrations:
            if r.is_active or r.user_id in active_users:
                continue
            seen = latest_cancelled.get(r.user_id)
            if seen is None or (r.cancelled_at, r.created_at) >= (seen.cancelled_at, seen.created_at):
                latest_cancelled[r.user_id] = r
        cancelled = [r for r in registrations if latest_cancelled.get(r.user_id) is r]

        verified = set(
            Attendance.objects.verified()
            .filter(event=event, user__in=[r.user_id for r in confirmed])
            .values_list('user_id', flat=True)
        )

        for registrations_list in (confirmed, waiting_list, cancelled):
            for position, r in enumerate(registrations_list, start=1):
                r.position = position

        for r in confirmed:
            r.verified_attendance = r.user_id in verified
            r.plus_one = _plus_one_of(r)

        for r in cancelled:
            # Self-cancellations and cancellations by since deleted members are not attributed
            if r.self_cancelled or r.cancelled_by is None:
                r.cancelled_by_name = None
            else:
                r.cancelled_by_name = r.cancelled_by.full_name

        return Roster(confirmed, waiting_list, cancelled)

    @staticmethod
    def add_member(event, user):
        """
        Adds a member to the event as confirmed, bypassing capacity, waitlist and payment.

        An earlier registration of the member is reused (and reactivated when cancelled).
        """
        with transaction.atomic():
            registration = Registration.objects.current_for(event, user).first()
            if registration is None:
                registration = Registration(event=event, user=user)
            registration.reset(is_waiting_list=False)
            registration.payment_status = Registration.payment_statuses.COMPLETED.v
            registration.terms_accepted = True
            registration.cancellation_policy_accepted = True
            registration.save()

        logger.info("Added %s to event %s", user, event.pk)
        return registration

    @staticmethod
    def remove_member(event, user, admin):
        """ Cancels all active registrations of the member for this event, attributed to the given admin. """
        with transaction.atomic():
            registrations = list(Registration.objects.select_for_update().active().filter(event=event, user=user))
            if not registrations:
                raise ValidationError(_("This member is not registered for this event"), code='not_registered')

            now = timezone.now()
            for registration in registrations:
                registration.finalize_cancellation(by=admin, at=now)
                registration.save()

        logger.info("Removed %s from event %s by %s", user, event.pk, admin)
        return registrations

    @staticmethod
    def search_members(event, query):
        """ Searches members by name, leaving out members that are already actively registered. """
        registered = set(Registration.objects.active().filter(event=event).values_list('user_id', flat=True))
        return [m for m in Member.objects.search(query) if m.pk not in registered]


class PlusOneService:
    @staticmethod
    def add_guest(event, user, name, email):
        """ Adds a +1 guest to the user's confirmed registration for a +1 event. """
        name = (name or '').strip()
        email = (email or '').strip()

        if not event.allows_plus_one:
            raise ValidationError(_("This event does not allow +1 guests"), code='plus_one_not_allowed')
        if not name or not email:
            raise ValidationError(_("Please enter both the name and email of your guest"), code='invalid_guest')
        try:
            validate_email(email)
        except ValidationError:
            raise ValidationError(_("Please enter a valid email address"), code='invalid_guest')

        registration = Registration.objects.active().filter(event=event, user=user).first()
        if registration is None:
            raise ValidationError(_("You must be registered for this event to add a guest"), code='not_registered')
        if registration.is_waiting_list:
            raise ValidationError(_("Guests can only be added to confirmed registrations"), code='waiting_list')
        if PlusOneGuest.objects.filter(registration=registration).exists():
            raise ValidationError(_("You already added a +1 guest"), code='already_has_guest')

        return PlusOneGuest.objects.create(registration=registration, guest_name=name, guest_email=email)

    @staticmethod
    def remove_guest(registration):
        deleted, _rows = PlusOneGuest.objects.filter(registration=registration).delete()
        if not deleted:
            raise ValidationError(_("There is no +1 guest to remove"), code='no_guest')


class AttendanceService:
    # secrets.token_urlsafe(24) gives 32 characters
    BARCODE_BYTES = 24

    @staticmethod
    def set_verified(event, user, verified, by):
        """ Marks (or unmarks) the attendance of a member at an event, creating the attendance record if needed. """
        with transaction.atomic():
            attendance, _created = Attendance.objects.select_for_update().get_or_create(
                event=event, user=user, defaults={'marked_by': by})
            attendance.verified_attendance = verified
            attendance.verified_at = timezone.now() if verified else None
            attendance.verified_by = by if verified else None
            attendance.save()
        return attendance

    @classmethod
    def get_or_create_barcode(cls, event, user):
        """ Returns the check-in barcode of a confirmed member for this event, generating it on first use. """
        if not Registration.objects.confirmed().filter(event=event, user=user).exists():
            raise ValidationError(_("You are not registered for this event"), code='not_registered')

        with transaction.atomic():
            attendance, _created = Attendance.objects.select_for_update().get_or_create(event=event, user=user)
            if not attendance.barcode:
                attendance.barcode = secrets.token_urlsafe(cls.BARCODE_BYTES)
                attendance.save()
        return attendance.barcode

    @staticmethod
    def verify_by_barcode(barcode, admin):
        """
        Verifies attendance through a scanned barcode.

        Returns a dict with success, and either error or the user_id and event_id of the verified attendance. Scanning
        a barcode twice succeeds both times.
        """
        if not admin.is_admin:
            return {'success': False, 'error': _("Only admins can verify attendance")}

        try:
            attendance = Attendance.objects.select_related('event', 'user').get(barcode=barcode)
        except Attendance.DoesNotExist:
            return {'success': False, 'error': _("Unknown barcode")}

        if not Registration.objects.confirmed().filter(event=attendance.event_id, user=attendance.user_id).exists():
            return {'success': False, 'error': _("This member is not registered for this event")}

        AttendanceService.set_verified(attendance.event, attendance.user, True, by=admin)
        logger.info("Verified attendance of %s at event %s by %s", attendance.user, attendance.event_id, admin)
        return {'success': True, 'user_id': attendance.user_id, 'event_id': attendance.event_id}

    @staticmethod
    def has_verified_attendance(event, user):
        if not Registration.objects.active().filter(event=event, user=user).exists():
            return False
        return Attendance.objects.verified().filter(event=event, user=user).exists()


class RegistrationNotifyService:
    @staticmethod
    def send_confirmation_email(registration):
        user = registration.user
        event = registration.event
        context = {
            'user': user,
            'event': event,
            'registration': registration,
        }

        subject = render_to_string('registrations/email/registration_confirmation_subject.txt', context)
        body = render_to_string('registrations/email/registration_confirmation.txt', context)
        # Remove all empty lines, except for the ones that contain just a . (then just remove the .). This allows
        # removing the empty lines produced by template tags, while keeping the ones explicitly added in the template.
        body = re.sub("^\n+", "", body)
        body = re.sub("\n\n+", "\n", body)
        body = re.sub("\n\\.\n", "\n\n", body)

        email = EmailMessage(
            subject=settings.EMAIL_SUBJECT_PREFIX + subject.strip(),
            body=body,
            to=[user.email],
            bcc=settings.BCC_EMAIL_TO,
        )
        email.send()

    @staticmethod
    def notify_confirmed(registration):
        """ Sends the confirmation email, never failing the (already committed) registration. """
        try:
            RegistrationNotifyService.send_confirmation_email(registration)
        except Exception:
            logger.exception("Could not send confirmation email for registration %s", registration.pk)
