import reversion
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _
from konst import Constant, ConstantGroup, Constants

from clubhouse.common.db import UpdatedAtQuerySetMixin


class RegistrationQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    def active(self):
        """ Registrations that are not (finally) cancelled. """
        return self.filter(refund_processed=False)

    def confirmed(self):
        return self.active().filter(is_waiting_list=False)

    def waiting_list(self):
        return self.active().filter(is_waiting_list=True)

    def cancelled(self):
        return self.filter(refund_processed=True)

    def pending_refund(self):
        return self.active().filter(refund_requested=True)

    def current_for(self, event, user):
        """
        Returns the current registration for the given event and user.

        This is the active registration if there is one, or otherwise the most recent cancelled one. This returns a
        queryset that contains at most 1 result, not a model instance or none, call .first() on it if you need that.
        """
        return (
            self.filter(event=event, user=user)
            .order_by('refund_processed', '-created_at', '-pk')
        )[:1]

    def in_storage_order(self):
        return self.order_by('created_at', 'pk')


class RegistrationManager(models.Manager.from_queryset(RegistrationQuerySet)):
    pass


@reversion.register(follow=('plus_one_guest',))
class Registration(models.Model):
    """
    A Registration is the link between a member and an Event.

    The lifecycle is kept in a handful of flags rather than a status field, since the mobile client reads and writes
    these flags directly. The effective state is derived from them, see the state property.
    """

    states = Constants(
        Constant(CONFIRMED='confirmed', label=_('Confirmed')),
        Constant(WAITINGLIST='waitlisted', label=_('Waiting list')),
        Constant(PENDING_REFUND='pending_refund', label=_('Cancellation pending refund approval')),
        Constant(CANCELLED='cancelled', label=_('Cancelled')),
        ConstantGroup("ACTIVE", ("CONFIRMED", "WAITINGLIST", "PENDING_REFUND")),
    )

    payment_statuses = Constants(
        Constant(NONE='', label=_('No payment')),
        Constant(PENDING='pending', label=_('Payment pending')),
        Constant(COMPLETED='completed', label=_('Payment completed')),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=False, on_delete=models.CASCADE,
                             related_name='registrations')
    event = models.ForeignKey('events.Event', null=False, on_delete=models.CASCADE,
                              related_name='registrations')

    is_waiting_list = models.BooleanField(verbose_name=_('On waiting list'), default=False)

    refund_requested = models.BooleanField(verbose_name=_('Refund requested'), default=False)
    refund_requested_at = models.DateTimeField(verbose_name=_('Refund requested at'), null=True, blank=True)
    refund_approved = models.BooleanField(verbose_name=_('Refund approved'), null=True, blank=True)
    # Set when a cancellation is finalized. A cancelled registration is never deleted, only marked.
    refund_processed = models.BooleanField(verbose_name=_('Cancelled'), default=False)
    cancelled_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL,
                                     related_name='+', verbose_name=_('Cancelled by'))
    cancelled_at = models.DateTimeField(verbose_name=_('Cancelled at'), null=True, blank=True)

    payment_status = models.CharField(
        verbose_name=_('Payment status'), max_length=16, blank=True, default=payment_statuses.NONE.v,
        choices=[(c.v, c.label) for c in payment_statuses.constants])
    terms_accepted = models.BooleanField(verbose_name=_('Terms accepted'), default=False)
    cancellation_policy_accepted = models.BooleanField(verbose_name=_('Cancellation policy accepted'), default=False)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True, null=False)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True, null=False)

    objects = RegistrationManager()

    @property
    def state(self):
        if self.refund_processed:
            return self.states.CANCELLED
        if self.refund_requested:
            return self.states.PENDING_REFUND
        if self.is_waiting_list:
            return self.states.WAITINGLIST
        return self.states.CONFIRMED

    @property
    def is_active(self):
        return not self.refund_processed

    @property
    def self_cancelled(self):
        return self.cancelled_by_id is not None and self.cancelled_by_id == self.user_id

    def reset(self, is_waiting_list):
        """ Reactivates this registration, clearing any earlier cancellation. Does not save. """
        self.is_waiting_list = is_waiting_list
        self.refund_processed = False
        self.cancelled_by = None
        self.cancelled_at = None
        self.refund_requested = False
        self.refund_requested_at = None
        self.refund_approved = None

    def finalize_cancellation(self, by, at):
        """ Marks this registration as cancelled by the given member. Does not save. """
        self.refund_processed = True
        self.cancelled_by = by
        self.cancelled_at = at

    def __str__(self):
        return _('%(user)s - %(event)s - %(state)s') % {
            'user': self.user, 'event': self.event, 'state': self.state.label,
        }

    class Meta:
        verbose_name = _('registration')
        verbose_name_plural = _('registrations')

        indexes = [
            # Index to speed up current_for lookups
            models.Index(fields=['user', 'event', 'refund_processed', 'created_at'],
                         name='idx_user_event_active_created'),
            # Index to speed up confirmed count lookups
            models.Index(fields=['event', 'refund_processed', 'is_waiting_list'],
                         name='idx_event_active_waiting'),
        ]

        constraints = [
            models.UniqueConstraint(fields=['event', 'user'], condition=Q(refund_processed=False),
                                    name='one_active_registration_per_user_per_event'),
            models.CheckConstraint(condition=Q(refund_processed=False) | Q(cancelled_at__isnull=False),
                                   name='cancelled_registration_has_timestamp'),
        ]
