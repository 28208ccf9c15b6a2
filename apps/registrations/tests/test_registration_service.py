from unittest import mock

from django.core import mail
from django.core.exceptions import ValidationError
from django.test import TestCase
from parameterized import parameterized

from apps.events.models import Event
from apps.events.tests.factories import EventFactory
from apps.people.tests.factories import MemberFactory

from ..models import Registration
from ..services import AppPaymentRequired, RegistrationService
from .factories import RegistrationFactory


class TestRegister(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.event = EventFactory(capacity=3)
        cls.user = MemberFactory()

    def register(self, event=None, user=None):
        return RegistrationService.register(event or self.event, user or self.user)

    def test_register(self):
        registration = self.register()
        self.assertTrue(registration.state.CONFIRMED)
        self.assertEqual(registration.event, self.event)
        self.assertEqual(registration.user, self.user)

    def test_register_twice_updates_existing_row(self):
        """ Registering again must update the existing registration rather than add a second one. """
        first = self.register()
        second = self.register()
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Registration.objects.filter(event=self.event, user=self.user).count(), 1)
        self.assertTrue(second.state.CONFIRMED)

    def test_register_twice_at_capacity(self):
        """ A confirmed member re-registering on a full event does not push themselves onto the waiting list. """
        first = self.register()
        RegistrationFactory.create_batch(2, event=self.event)
        second = self.register()
        self.assertEqual(first.pk, second.pk)
        self.assertTrue(second.state.CONFIRMED)

    @parameterized.expand([
        (0, False),
        (2, False),
        (3, True),
        (4, True),
    ])
    def test_capacity_boundary(self, confirmed, waiting_list):
        RegistrationFactory.create_batch(confirmed, event=self.event)
        registration = self.register()
        self.assertEqual(registration.is_waiting_list, waiting_list)

    def test_capacity_ignores_inactive_registrations(self):
        """ Waiting list and cancelled registrations do not take up places. """
        RegistrationFactory.create_batch(2, event=self.event)
        RegistrationFactory(event=self.event, waiting_list=True)
        RegistrationFactory(event=self.event, cancelled=True)
        registration = self.register()
        self.assertTrue(registration.state.CONFIRMED)

    def test_no_capacity(self):
        for capacity in (None, 0):
            event = EventFactory(capacity=capacity)
            RegistrationFactory.create_batch(5, event=event)
            with self.subTest(capacity=capacity):
                self.assertTrue(self.register(event=event).state.CONFIRMED)

    def test_waitlist_tag(self):
        """ A waitlist tag puts everyone on the waiting list, even with places left. """
        event = EventFactory(status=['Open to Registration', 'Waitlist'], capacity=10)
        self.assertTrue(self.register(event=event).state.WAITINGLIST)

    def test_restricted_event_ignores_capacity(self):
        event = EventFactory(capacity=1, is_restricted=True)
        RegistrationFactory(event=event)
        self.assertTrue(self.register(event=event).state.CONFIRMED)

    def test_restricted_event_honours_waitlist_tag(self):
        event = EventFactory(status=['Invitation Only', 'Waitlist'], is_restricted=True)
        self.assertTrue(self.register(event=event).state.WAITINGLIST)

    def test_registration_closed(self):
        event = EventFactory(status=['Registration Closed'])
        with self.assertRaises(ValidationError) as cm:
            self.register(event=event)
        self.assertEqual(cm.exception.code, 'registration_closed')
        self.assertFalse(Registration.objects.exists())

    def test_app_payment_required(self):
        """ Events paid through the app cannot be registered for directly. """
        event = EventFactory(app_charged=True)
        with self.assertRaises(AppPaymentRequired):
            self.register(event=event)
        self.assertFalse(Registration.objects.exists())

    def test_manual_payment_event_registers(self):
        event = EventFactory(cost_bearing=True)
        self.assertTrue(self.register(event=event).state.CONFIRMED)

    def test_reregister_after_cancel(self):
        """ Re-registering reuses the cancelled registration and clears the cancellation. """
        cancelled = RegistrationFactory(event=self.event, user=self.user, cancelled=True, refund_approved=False)
        registration = self.register()
        self.assertEqual(registration.pk, cancelled.pk)
        registration.refresh_from_db()
        self.assertTrue(registration.state.CONFIRMED)
        self.assertIsNone(registration.cancelled_by)
        self.assertIsNone(registration.cancelled_at)
        self.assertIsNone(registration.refund_approved)
        self.assertFalse(registration.refund_requested)

    def test_reregister_prefers_active_registration(self):
        RegistrationFactory(event=self.event, user=self.user, cancelled=True)
        active = RegistrationFactory(event=self.event, user=self.user, waiting_list=True)
        registration = self.register()
        self.assertEqual(registration.pk, active.pk)
        self.assertEqual(Registration.objects.filter(user=self.user).count(), 2)

    def test_marks_joined_event(self):
        user = MemberFactory(has_viewed_events=True)
        self.register(user=user)
        user.refresh_from_db()
        self.assertTrue(user.has_joined_event)

    def test_confirmation_email(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.register()
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.user.email])
        self.assertIn(self.event.title, mail.outbox[0].subject)
        self.assertIn(self.event.title, mail.outbox[0].body)

    def test_no_confirmation_email_for_waiting_list(self):
        event = EventFactory(status=['Waitlist'])
        with self.captureOnCommitCallbacks(execute=True):
            self.register(event=event)
        self.assertEqual(len(mail.outbox), 0)

    def test_confirmation_email_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.register()
        self.assertEqual(len(mail.outbox), 0)
        for callback in callbacks:
            callback()
        self.assertEqual(len(mail.outbox), 1)

    def test_confirmation_email_failure_keeps_registration(self):
        with mock.patch('apps.registrations.services.EmailMessage.send', side_effect=ConnectionRefusedError):
            with self.assertLogs('apps.registrations.services', 'ERROR'):
                with self.captureOnCommitCallbacks(execute=True):
                    registration = self.register()
        self.assertTrue(Registration.objects.get(pk=registration.pk).state.CONFIRMED)


class TestCancel(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.free_event = EventFactory()
        cls.manual_event = EventFactory(cost_bearing=True)
        cls.paid_event = EventFactory(app_charged=True)

    def test_cancel_free(self):
        registration = RegistrationFactory(event=self.free_event)
        registration = RegistrationService.cancel(registration, registration.user)
        registration.refresh_from_db()
        self.assertTrue(registration.refund_processed)
        self.assertTrue(registration.state.CANCELLED)
        self.assertEqual(registration.cancelled_by, registration.user)
        self.assertIsNotNone(registration.cancelled_at)
        self.assertTrue(registration.self_cancelled)

    def test_cancel_manual_payment(self):
        """ Manually paid events have no refund flow, so cancelling is immediate. """
        registration = RegistrationFactory(event=self.manual_event)
        registration = RegistrationService.cancel(registration, registration.user)
        self.assertTrue(registration.state.CANCELLED)

    def test_cancel_paid_requests_refund(self):
        registration = RegistrationFactory(event=self.paid_event)
        registration = RegistrationService.cancel(registration, registration.user)
        registration.refresh_from_db()
        self.assertTrue(registration.refund_requested)
        self.assertIsNotNone(registration.refund_requested_at)
        self.assertFalse(registration.refund_processed)
        self.assertIsNone(registration.cancelled_at)
        self.assertTrue(registration.state.PENDING_REFUND)

    def test_cancel_paid_twice(self):
        """ Asking for a refund again while one is pending changes nothing. """
        registration = RegistrationFactory(event=self.paid_event, pending_refund=True)
        requested_at = registration.refund_requested_at
        registration = RegistrationService.cancel(registration, registration.user)
        registration.refresh_from_db()
        self.assertTrue(registration.state.PENDING_REFUND)
        self.assertEqual(registration.refund_requested_at, requested_at)

    @parameterized.expand([
        ('free_event', ),
        ('manual_event', ),
        ('paid_event', ),
    ])
    def test_cancel_waiting_list(self, event_attr):
        """ Waiting list registrations never paid, so they are always cancelled immediately. """
        registration = RegistrationFactory(event=getattr(self, event_attr), waiting_list=True)
        registration = RegistrationService.cancel(registration, registration.user)
        registration.refresh_from_db()
        self.assertTrue(registration.state.CANCELLED)
        self.assertFalse(registration.refund_requested)

    def test_cancel_cancelled(self):
        registration = RegistrationFactory(event=self.free_event, cancelled=True)
        with self.assertRaises(ValidationError):
            RegistrationService.cancel(registration, registration.user)

    def test_cancel_other_members_registration(self):
        registration = RegistrationFactory(event=self.free_event)
        with self.assertRaises(ValidationError):
            RegistrationService.cancel(registration, MemberFactory())
        registration.refresh_from_db()
        self.assertTrue(registration.state.CONFIRMED)


class TestScenario(TestCase):
    def test_no_automatic_promotion(self):
        """
        Two members fill an event, a third ends up on the waiting list. When the first cancels, the count drops but
        the waiting list is left alone.
        """
        event = EventFactory(capacity=2)
        first, second, third = MemberFactory.create_batch(3)

        self.assertTrue(RegistrationService.register(event, first).state.CONFIRMED)
        self.assertTrue(RegistrationService.register(event, second).state.CONFIRMED)
        waiting = RegistrationService.register(event, third)
        self.assertTrue(waiting.state.WAITINGLIST)

        registration = Registration.objects.get(event=event, user=first)
        RegistrationService.cancel(registration, first)

        self.assertEqual(Event.objects.confirmed_count_for(event), 1)
        waiting.refresh_from_db()
        self.assertTrue(waiting.state.WAITINGLIST)
