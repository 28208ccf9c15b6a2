import datetime

import reversion
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from konst import Constant, Constants

from apps.core.fields import MonetaryField
from apps.registrations.models import Registration
from clubhouse.common.db import UpdatedAtQuerySetMixin


class EventQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    def with_confirmed_count(self):
        """
        Adds confirmed_count annotation.

        This is the number of confirmed registrations (active and not on the waiting list) for each event.
        """
        return self.annotate(
            confirmed_count=Count(
                'registrations',
                filter=Q(registrations__refund_processed=False, registrations__is_waiting_list=False),
            ),
        )

    def confirmed_count_for(self, event, exclude_user=None):
        """
        Returns the number of confirmed registrations for the given event, read fresh from the database.

        When exclude_user is given, a confirmed registration of that user is not counted (so re-registering does not
        count the existing registration against the capacity).
        """
        qs = Registration.objects.confirmed().filter(event=event)
        if exclude_user is not None:
            qs = qs.exclude(user=exclude_user)
        return qs.count()

    def networking_live_on(self, day):
        """ Returns the events open for networking that take place on the given day. """
        return [e for e in self.filter(open_for_networking=True) if e.is_live_on(day)]


class EventManager(models.Manager.from_queryset(EventQuerySet)):
    pass


@reversion.register()
class Event(models.Model):
    """Information about an Event."""

    tags = Constants(
        Constant(OPEN='Open to Registration', label=_('Open to registration')),
        Constant(PRE_REGISTRATION='Pre-Registration', label=_('Pre-registration')),
        Constant(PLUS_ONE='+1 Event', label=_('+1 event')),
        Constant(COST_BEARING='Cost Bearing Event', label=_('Cost bearing event')),
        Constant(INVITATION_ONLY='Invitation Only', label=_('Invitation only')),
        Constant(MEMBER_HOSTED='Member Hosted Event', label=_('Member hosted event')),
        Constant(CLOSED='Registration Closed', label=_('Registration closed')),
        Constant(FULLY_BOOKED='Fully Booked', label=_('Fully booked')),
        Constant(WAITLIST='Waitlist', label=_('Waitlist')),
        Constant(TEST='Test Event', label=_('Test event')),
    )

    # Tags that describe the registration state, these are shown through the registration button rather than the
    # status line.
    REGISTRATION_TAGS = ('CLOSED', 'OPEN', 'FULLY_BOOKED', 'WAITLIST')

    title = models.CharField(max_length=200, verbose_name=_('Title'))
    description = models.TextField(verbose_name=_('Description'), blank=True, help_text=_('HTML is allowed'))
    host = models.CharField(max_length=200, verbose_name=_('Host'))
    location = models.CharField(max_length=200, verbose_name=_('Location'))
    city = models.CharField(max_length=100, verbose_name=_('City'), blank=True)
    country = models.CharField(max_length=100, verbose_name=_('Country'), blank=True)
    image_url = models.URLField(verbose_name=_('Image url'), blank=True)
    dress_code = models.CharField(max_length=100, verbose_name=_('Dress code'), blank=True)

    start_date = models.DateTimeField(verbose_name=_('Start'))
    end_date = models.DateTimeField(verbose_name=_('End'), null=True, blank=True)

    status = models.JSONField(
        verbose_name=_('Status'), default=list, blank=True,
        help_text=_('List of status tags, e.g. "Open to Registration" or "Waitlist".'))

    capacity = models.PositiveIntegerField(
        null=True, blank=True,
        help_text=_('Maximum number of confirmed attendees for this event. If omitted, there is no limit.'))

    price = MonetaryField(null=True, blank=True)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY, blank=True)
    price_charged_via_app = models.BooleanField(
        verbose_name=_('Price charged via app'), default=False,
        help_text=_('When checked (for cost bearing events), members pay by card in the app before they are '
                    'registered. Otherwise they register first and pay manually.'))

    is_restricted = models.BooleanField(
        verbose_name=_('Restricted'), default=False,
        help_text=_('Invite-only event. The capacity does not put invitees on the waiting list.'))
    rsvp_date = models.DateTimeField(verbose_name=_('RSVP date'), null=True, blank=True)

    open_for_networking = models.BooleanField(verbose_name=_('Open for networking'), default=False)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    objects = EventManager()

    def has_tag(self, tag):
        return tag.v in (self.status or [])

    @property
    def registration_closed(self):
        return self.has_tag(self.tags.CLOSED)

    @property
    def fully_booked(self):
        return self.has_tag(self.tags.FULLY_BOOKED)

    @property
    def has_waitlist(self):
        return self.has_tag(self.tags.WAITLIST)

    @property
    def is_cost_bearing(self):
        return self.has_tag(self.tags.COST_BEARING)

    @property
    def requires_app_payment(self):
        """ Cost bearing events charged through the app need a card payment before registration. """
        return self.is_cost_bearing and self.price_charged_via_app

    @property
    def requires_manual_payment(self):
        return self.is_cost_bearing and not self.price_charged_via_app

    @property
    def allows_plus_one(self):
        return self.has_tag(self.tags.PLUS_ONE)

    def is_at_capacity(self, confirmed_count):
        # A capacity of 0 means no capacity was set, like None
        return bool(self.capacity) and confirmed_count >= self.capacity

    def capacity_display(self, confirmed_count):
        """
        Returns a (text, full) tuple describing how many places are taken.

        full is True when the capacity is reached, registration is closed or the event is tagged as fully booked.
        """
        full = self.is_at_capacity(confirmed_count) or self.registration_closed or self.fully_booked
        if self.capacity:
            if self.fully_booked:
                return ("{0}/{0}".format(self.capacity), True)
            return ("{}/{}".format(confirmed_count, self.capacity), full)
        return (_("{} registered").format(confirmed_count), False)

    def status_display(self, now=None):
        """ Returns the status line for this event, leaving out tags that describe the registration state. """
        if now is None:
            now = timezone.now()
        if self.is_restricted and self.rsvp_date and now > self.rsvp_date:
            return _("RSVP date passed")
        registration_tags = {getattr(self.tags, name).v for name in self.REGISTRATION_TAGS}
        shown = [s for s in (self.status or []) if s not in registration_tags]
        return ", ".join(shown) or _("Active")

    def is_live_on(self, day):
        """ Returns whether this event takes place (at least partially) on the given (UTC) day. """
        start_day = self.start_date.astimezone(datetime.timezone.utc).date()
        end_day = self.end_date.astimezone(datetime.timezone.utc).date() if self.end_date else start_day
        return start_day <= day <= end_day

    def clean(self):
        errors = {}
        valid_tags = {c.v for c in self.tags.constants}
        if not self.status:
            errors['status'] = _("At least one status is required")
        elif any(s not in valid_tags for s in self.status):
            errors['status'] = _("Unknown status")
        if self.requires_app_payment and (self.price is None or self.price <= 0):
            errors['price'] = _("Price is required when charging via app")
        if self.end_date and self.end_date < self.start_date:
            errors['end_date'] = _("End must be after start")
        if errors:
            raise ValidationError(errors)

    def __str__(self):
        return self.title

    class Meta:
        verbose_name = _('event')
        verbose_name_plural = _('events')
        ordering = ('start_date',)

        indexes = [
            models.Index(fields=['open_for_networking', 'start_date'], name='idx_networking_start_date'),
        ]
