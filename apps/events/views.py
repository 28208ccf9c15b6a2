import logging

from django.db import DatabaseError
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.functional import cached_property
from django.views.generic import View

from apps.registrations import feed
from apps.registrations.models import Attendance, PlusOneGuest, Registration
from apps.registrations.services import AttendanceService
from clubhouse.common.views import ApiLoginRequiredMixin, CacheUsingTimestampsMixin

from .models import Event

logger = logging.getLogger(__name__)


def event_json(event, confirmed_count, now=None):
    capacity_text, full = event.capacity_display(confirmed_count)
    return {
        'id': event.pk,
        'title': event.title,
        'description': event.description,
        'host': event.host,
        'location': event.location,
        'city': event.city,
        'country': event.country,
        'image_url': event.image_url,
        'dress_code': event.dress_code,
        'start_date': event.start_date.isoformat(),
        'end_date': event.end_date.isoformat() if event.end_date else None,
        'status': event.status,
        'status_display': str(event.status_display(now)),
        'capacity': event.capacity,
        'confirmed_count': confirmed_count,
        'capacity_display': str(capacity_text),
        'full': full,
        'price': str(event.price) if event.price is not None else None,
        'currency': event.currency,
        'cost_bearing': event.is_cost_bearing,
        'payment_via_app': event.requires_app_payment,
        'allows_plus_one': event.allows_plus_one,
        'registration_closed': event.registration_closed,
        'has_waitlist': event.has_waitlist,
    }


def display_confirmed_count(event_id):
    """ Confirmed count for display, which falls back to 0 rather than failing the screen. """
    try:
        return feed.confirmed_count(event_id)
    except DatabaseError:
        logger.exception("Could not fetch the confirmed count for event %s", event_id)
        return 0


class EventList(ApiLoginRequiredMixin, View):
    """ Upcoming (and running) events, with the registration state of the current member. """

    def get(self, request):
        now = timezone.now()
        events = list(
            Event.objects
            .filter(Q(end_date__gte=now) | Q(end_date__isnull=True, start_date__gte=now))
            .with_confirmed_count()
            # Grouping drops the default ordering
            .order_by('start_date')
        )
        states = {
            r.event_id: r.state.v
            for r in Registration.objects.active().filter(user=request.user, event__in=[e.pk for e in events])
        }

        request.user.mark_viewed_events()

        return JsonResponse({
            'events': [
                dict(event_json(e, e.confirmed_count, now), registration_state=states.get(e.pk))
                for e in events
            ],
        })


class EventDetail(ApiLoginRequiredMixin, CacheUsingTimestampsMixin, View):
    """
    Event details with the registration of the current member.

    Clients re-fetch this after every change notice for the event, the ETag makes that cheap when nothing they show
    has changed.
    """

    @cached_property
    def event(self):
        return get_object_or_404(Event, pk=self.kwargs['pk'])

    def instances_used(self):
        user = self.request.user
        return [
            Event.objects.filter(pk=self.event.pk),
            # All registrations, since any of them can change the confirmed count
            Registration.objects.filter(event=self.event),
            PlusOneGuest.objects.filter(registration__event=self.event, registration__user=user),
            Attendance.objects.filter(event=self.event, user=user),
        ]

    def get(self, request, pk):
        event = self.event
        user = request.user
        registration = Registration.objects.current_for(event, user).first()

        guest = None
        if registration is not None and registration.is_active:
            guest = PlusOneGuest.objects.filter(registration=registration).first()

        return JsonResponse({
            'event': event_json(event, display_confirmed_count(event.pk)),
            'registration': {
                'id': registration.pk,
                'state': registration.state.v,
                'is_waiting_list': registration.is_waiting_list,
                'refund_requested': registration.refund_requested,
                'payment_status': registration.payment_status,
            } if registration is not None else None,
            'plus_one': {'name': guest.guest_name, 'email': guest.guest_email} if guest else None,
            'verified_attendance': AttendanceService.has_verified_attendance(event, user),
            'is_admin': user.is_admin,
        })
