import logging

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.translation import gettext as _
from mollie.api.client import Client
from mollie.api.error import Error as MollieError

from apps.registrations.models import Registration

from .models import Payment

logger = logging.getLogger(__name__)

# This takes some extra care to not accidentally use a live API key, even when running unittests on a live checkout.
# In testcases, this code can still be ran by mocking mollie_client (or patching it with an actual instance for
# integration testing if needed).
if getattr(settings, 'IN_UNITTEST', False):
    mollie_client = None
else:
    mollie_client = Client()
    mollie_client.set_api_key(settings.MOLLIE_API_KEY)


class RefundFailed(ValidationError):
    """ Raised when the payment provider did not refund the payment. The message is the provider's error. """


class FunctionRefundProvider:
    """
    Refunds through one of the serverless payment functions.

    The function is called with the provider reference of the payment and returns {success, error?}.
    """

    def __init__(self, function_name):
        self.function_name = function_name

    def refund(self, payment):
        url = '{}/{}'.format(settings.PAYMENT_FUNCTIONS_URL.rstrip('/'), self.function_name)
        try:
            response = requests.post(
                url,
                json={'paymentId': payment.provider_reference, 'refundPercentage': 100},
                headers={'Authorization': 'Bearer {}'.format(settings.PAYMENT_FUNCTIONS_KEY)},
                timeout=settings.PAYMENT_FUNCTIONS_TIMEOUT,
            )
        except requests.RequestException as ex:
            logger.warning("Calling %s for payment %s failed: %s", self.function_name, payment.pk, ex)
            return {'success': False, 'error': str(ex)}

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            return {'success': False, 'error': data.get('error') or "HTTP {}".format(response.status_code)}
        return {'success': bool(data.get('success')), 'error': data.get('error')}


class MollieRefundProvider:
    def refund(self, payment):
        try:
            mollie_client.payment_refunds.with_parent_id(payment.provider_reference).create({
                "amount": {"currency": payment.currency, "value": format(payment.amount, '.2f')},
                "description": _("Refund for {event} / {name}").format(
                    event=payment.registration.event.title, name=payment.registration.user.full_name),
            })
        except MollieError as ex:
            logger.warning("Mollie refund for payment %s failed: %s", payment.pk, ex)
            return {'success': False, 'error': str(ex)}
        return {'success': True}


REFUND_PROVIDERS = {
    Payment.providers.QNB.v: FunctionRefundProvider('process-qnb-refund'),
    Payment.providers.SIPAY.v: FunctionRefundProvider('process-sipay-refund'),
    Payment.providers.MOLLIE.v: MollieRefundProvider(),
}


class RefundService:
    @staticmethod
    def refundable_payment(registration):
        """ Returns the payment to refund for a registration with a pending refund request. """
        if not registration.state.PENDING_REFUND:
            raise ValidationError(_("There is no pending refund request for this registration"),
                                  code='no_refund_request')

        payment = Payment.objects.latest_completed_for(registration)
        if payment is None:
            raise ValidationError(_("No completed payment found for this registration"), code='no_payment')
        if payment.payment_provider not in REFUND_PROVIDERS:
            raise ValidationError(_("Unknown payment provider: {}").format(payment.payment_provider),
                                  code='no_payment')
        return payment

    @staticmethod
    def approve_refund(registration, admin):
        """
        Refunds the payment of a registration with a pending refund request and finalizes its cancellation.

        The refund is requested from the provider of the latest completed payment first, nothing is changed unless
        the provider reports success. The provider is called without holding any locks, so the registration is
        checked again before it is cancelled. The cancellation is attributed to the member that asked for it.
        """
        registration = Registration.objects.select_related('event', 'user').get(pk=registration.pk)
        payment = RefundService.refundable_payment(registration)

        result = REFUND_PROVIDERS[payment.payment_provider].refund(payment)
        if not result.get('success'):
            error = result.get('error') or _("Refund failed")
            logger.warning("Refund of payment %s by %s failed: %s", payment.pk, admin, error)
            raise RefundFailed(error, code='refund_failed')

        try:
            with transaction.atomic():
                now = timezone.now()
                payment = Payment.objects.select_for_update().get(pk=payment.pk)
                payment.status = Payment.statuses.REFUNDED.v
                payment.refunded_at = now
                payment.save()

                registration = (
                    Registration.objects.select_for_update().select_related('event', 'user').get(pk=registration.pk)
                )
                finalized = bool(registration.state.PENDING_REFUND)
                if finalized:
                    registration.refund_approved = True
                    registration.finalize_cancellation(by=registration.user, at=now)
                    registration.save()
        except DatabaseError:
            # The money is already returned, so this needs manual reconciliation
            logger.exception("Payment %s (%s) was refunded, but recording the refund failed",
                             payment.pk, payment.provider_reference)
            raise

        if not finalized:
            logger.error("Payment %s was refunded, but registration %s changed while refunding",
                         payment.pk, registration.pk)
            raise ValidationError(_("The payment was refunded, but the registration was changed meanwhile"),
                                  code='refund_conflict')

        logger.info("Refund of payment %s approved by %s", payment.pk, admin)
        return registration

    @staticmethod
    def reject_refund(registration, admin):
        """ Rejects a pending refund request, the registration is confirmed again. """
        with transaction.atomic():
            registration = Registration.objects.select_for_update().get(pk=registration.pk)
            if not registration.state.PENDING_REFUND:
                raise ValidationError(_("There is no pending refund request for this registration"),
                                      code='no_refund_request')

            registration.refund_approved = False
            registration.refund_requested = False
            registration.save()

        logger.info("Refund request of registration %s rejected by %s", registration.pk, admin)
        return registration
