from unittest import mock

from .factories import MollieIdFaker


class MockMollieMixin:
    """
    Patches the mollie client with a fake that records refunds.

    Set mollie_refund_error to an exception to have the next refunds fail with it.
    """

    def setUp(self):
        super().setUp()

        # Create a fresh patch and "database" for each testcase, so things like assert_called work as expected.
        patcher = mock.patch('apps.payments.services.mollie_client')
        self.mollie_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.refund_id_faker = MollieIdFaker(prefix='re_')

        self.mollie_client.payment_refunds.with_parent_id.side_effect = self.mollie_refunds_for
        self.mollie_refunds = []
        self.mollie_refund_error = None

    def mollie_refunds_for(self, mollie_id):
        refunds = mock.Mock()
        refunds.create.side_effect = lambda data: self.mollie_refund_create(mollie_id, data)
        return refunds

    def mollie_refund_create(self, mollie_id, data):
        if self.mollie_refund_error is not None:
            raise self.mollie_refund_error

        self.assertRegex(data['amount']['value'], r'^\d+\.\d\d$')
        self.assertIn('currency', data['amount'])
        refund = {'id': self.refund_id_faker.generate(), 'paymentId': mollie_id, 'status': 'pending', **data}
        self.mollie_refunds.append(refund)
        return refund

    def assert_single_refund(self, payment):
        self.assertEqual(len(self.mollie_refunds), 1)
        (refund,) = self.mollie_refunds
        self.assertEqual(refund['paymentId'], payment.provider_reference)
        self.assertEqual(refund['amount']['currency'], payment.currency)
        self.assertEqual(refund['amount']['value'], format(payment.amount, '.2f'))
        self.assertIn(payment.registration.event.title, refund['description'])
        self.assertIn(payment.registration.user.full_name, refund['description'])
