import datetime

from django.http import JsonResponse
from django.utils import timezone
from django.views.generic import View

from apps.events.models import Event
from apps.registrations.models import Registration
from apps.registrations.services import AttendanceService
from clubhouse.common.views import ApiLoginRequiredMixin


class Dashboard(ApiLoginRequiredMixin, View):
    """
    Home screen data for the current member.

    When an admin is hijacking a member, request.user is that member, so the dashboard shows what they would see.
    """

    def get(self, request):
        user = request.user
        registered = set(Registration.objects.active().filter(user=user).values_list('event_id', flat=True))

        today = timezone.now().astimezone(datetime.timezone.utc).date()
        networking = [e for e in Event.objects.networking_live_on(today) if e.pk in registered]

        return JsonResponse({
            'member': {
                'id': user.pk,
                'name': user.full_name,
                'is_admin': user.is_admin,
                'is_hijacked': getattr(user, 'is_hijacked', False),
                'has_viewed_events': user.has_viewed_events,
                'has_joined_event': user.has_joined_event,
            },
            'registered_event_ids': sorted(registered),
            'networking_events': [
                {
                    'id': e.pk,
                    'title': e.title,
                    'verified_attendance': AttendanceService.has_verified_attendance(e, user),
                }
                for e in networking
            ],
        })
