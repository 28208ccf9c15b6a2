import reversion
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _
from konst import Constant, Constants

from apps.core.fields import MonetaryField


class PaymentQuerySet(models.QuerySet):
    def completed(self):
        return self.filter(status=Payment.statuses.COMPLETED.v)

    def latest_completed_for(self, registration):
        """ Returns the most recent completed payment for the given registration, or None. """
        return self.completed().filter(registration=registration).order_by('-created_at', '-pk').first()


class PaymentManager(models.Manager.from_queryset(PaymentQuerySet)):
    pass


@reversion.register(follow=('registration',))
class Payment(models.Model):
    """ A card payment for a registration, made through one of the payment providers. """

    statuses = Constants(
        Constant(PENDING='pending', label=_('Payment in progress')),
        Constant(COMPLETED='completed', label=_('Payment completed')),
        Constant(FAILED='failed', label=_('Payment failed/expired/aborted/etc.')),
        Constant(REFUNDED='refunded', label=_('Payment refunded')),
    )

    providers = Constants(
        Constant(QNB='qnb', label=_('QNB')),
        Constant(SIPAY='sipay', label=_('Sipay')),
        Constant(MOLLIE='mollie', label=_('Mollie')),
    )

    registration = models.ForeignKey('registrations.Registration', related_name='payments', on_delete=models.CASCADE)

    amount = MonetaryField()
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    status = models.CharField(
        verbose_name=_('Status'), max_length=16, default=statuses.PENDING.v,
        choices=[(c.v, c.label) for c in statuses.constants])

    payment_provider = models.CharField(
        verbose_name=_('Payment provider'), max_length=16,
        choices=[(c.v, c.label) for c in providers.constants])
    # null=True to allow non-unique blank values
    provider_reference = models.CharField(max_length=64, unique=True, blank=True, null=True, default=None)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True, null=False)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True, null=False)
    timestamp = models.DateTimeField(verbose_name=_('Transaction date/time'), null=True, blank=True)
    refunded_at = models.DateTimeField(verbose_name=_('Refunded at'), null=True, blank=True)

    objects = PaymentManager()

    def __str__(self):
        return "{} {} for {} for {} ({} / {})".format(
            self.amount,
            self.currency,
            self.registration.event,
            self.registration.user,
            self.status,
            self.payment_provider,
        )

    class Meta:
        verbose_name = _('payment')
        verbose_name_plural = _('payments')

        # Ensure that custom manager / queryset methods are also available on related managers
        base_manager_name = 'objects'

        constraints = [
            models.CheckConstraint(
                # provider_reference can be null (which avoids uniqueness constraints), but cannot be the empty string
                condition=~Q(provider_reference=""),
                name='provider_reference_cannot_be_empty',
            ),
            models.CheckConstraint(
                condition=Q(refunded_at__isnull=True) | Q(status='refunded'),
                name='only_refunded_payment_has_refunded_at',
            ),
        ]
