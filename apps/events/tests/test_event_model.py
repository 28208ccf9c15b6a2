from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from parameterized import parameterized

from apps.people.tests.factories import MemberFactory
from apps.registrations.tests.factories import RegistrationFactory

from ..models import Event
from .factories import EventFactory


class TestTags(TestCase):
    def test_tags(self):
        event = Event(status=['Open to Registration', '+1 Event', 'Waitlist'])
        self.assertTrue(event.allows_plus_one)
        self.assertTrue(event.has_waitlist)
        self.assertFalse(event.registration_closed)
        self.assertFalse(event.fully_booked)
        self.assertFalse(event.is_cost_bearing)

    def test_no_status(self):
        event = Event(status=None)
        self.assertFalse(event.has_waitlist)
        self.assertFalse(event.registration_closed)

    @parameterized.expand([
        (['Open to Registration'], False, False, False),
        (['Cost Bearing Event'], False, False, True),
        (['Cost Bearing Event'], True, True, False),
        # Charging via app means nothing for free events
        (['Open to Registration'], True, False, False),
    ])
    def test_payment(self, status, via_app, app_payment, manual_payment):
        event = Event(status=status, price_charged_via_app=via_app)
        self.assertEqual(event.requires_app_payment, app_payment)
        self.assertEqual(event.requires_manual_payment, manual_payment)


class TestCapacity(TestCase):
    @parameterized.expand([
        (None, 0, False),
        (None, 100, False),
        (0, 5, False),
        (3, 0, False),
        (3, 2, False),
        (3, 3, True),
        (3, 4, True),
    ])
    def test_is_at_capacity(self, capacity, confirmed_count, expected):
        self.assertEqual(Event(capacity=capacity).is_at_capacity(confirmed_count), expected)

    @parameterized.expand([
        (10, [], 4, ("4/10", False)),
        (10, [], 10, ("10/10", True)),
        (10, ['Registration Closed'], 4, ("4/10", True)),
        (10, ['Fully Booked'], 4, ("10/10", True)),
        (None, [], 4, ("4 registered", False)),
        (None, ['Registration Closed'], 4, ("4 registered", False)),
    ])
    def test_capacity_display(self, capacity, status, confirmed_count, expected):
        text, full = Event(capacity=capacity, status=status).capacity_display(confirmed_count)
        self.assertEqual((str(text), full), expected)


class TestStatusDisplay(TestCase):
    def test_registration_tags_hidden(self):
        event = Event(status=['Open to Registration', 'Cost Bearing Event', 'Waitlist', '+1 Event'])
        self.assertEqual(event.status_display(), "Cost Bearing Event, +1 Event")

    def test_active(self):
        self.assertEqual(str(Event(status=['Open to Registration']).status_display()), "Active")

    def test_rsvp_passed(self):
        now = datetime.now(timezone.utc)
        event = Event(status=['Invitation Only'], is_restricted=True, rsvp_date=now - timedelta(days=1))
        self.assertEqual(str(event.status_display(now)), "RSVP date passed")
        self.assertEqual(event.status_display(now - timedelta(days=2)), "Invitation Only")

    def test_rsvp_ignored_when_not_restricted(self):
        now = datetime.now(timezone.utc)
        event = Event(status=['Member Hosted Event'], rsvp_date=now - timedelta(days=1))
        self.assertEqual(event.status_display(now), "Member Hosted Event")


class TestClean(TestCase):
    def assertCleanErrors(self, event, fields):
        with self.assertRaises(ValidationError) as cm:
            event.clean()
        self.assertCountEqual(cm.exception.message_dict.keys(), fields)

    def test_valid(self):
        EventFactory.build().clean()
        EventFactory.build(app_charged=True).clean()

    def test_status_required(self):
        self.assertCleanErrors(EventFactory.build(status=[]), ['status'])

    def test_unknown_status(self):
        self.assertCleanErrors(EventFactory.build(status=['Open to Registration', 'Party']), ['status'])

    @parameterized.expand([
        (None, ),
        (Decimal('0.00'), ),
    ])
    def test_price_required_for_app_payment(self, price):
        self.assertCleanErrors(EventFactory.build(app_charged=True, price=price), ['price'])

    def test_end_before_start(self):
        event = EventFactory.build()
        event.end_date = event.start_date - timedelta(hours=1)
        self.assertCleanErrors(event, ['end_date'])


class TestLive(TestCase):
    def event(self, start, end=None):
        return Event(start_date=start, end_date=end)

    def test_single_day(self):
        event = self.event(datetime(2024, 5, 10, 18, 0, tzinfo=timezone.utc))
        self.assertTrue(event.is_live_on(date(2024, 5, 10)))
        self.assertFalse(event.is_live_on(date(2024, 5, 9)))
        self.assertFalse(event.is_live_on(date(2024, 5, 11)))

    def test_multiple_days(self):
        event = self.event(datetime(2024, 5, 10, 18, 0, tzinfo=timezone.utc),
                           datetime(2024, 5, 12, 2, 0, tzinfo=timezone.utc))
        for day in (10, 11, 12):
            self.assertTrue(event.is_live_on(date(2024, 5, day)))
        self.assertFalse(event.is_live_on(date(2024, 5, 13)))

    def test_utc_day(self):
        """ Days are compared in UTC, regardless of the timezone of the timestamps. """
        istanbul = timezone(timedelta(hours=3))
        event = self.event(datetime(2024, 5, 11, 1, 0, tzinfo=istanbul))
        self.assertTrue(event.is_live_on(date(2024, 5, 10)))
        self.assertFalse(event.is_live_on(date(2024, 5, 11)))


class TestQuerySet(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.event = EventFactory()
        cls.event2 = EventFactory()

    def make_registrations(self):
        for e in (self.event, self.event2):
            RegistrationFactory.create_batch(2, event=e)
            RegistrationFactory(event=e, pending_refund=True)
            RegistrationFactory(event=e, waiting_list=True)
            RegistrationFactory(event=e, cancelled=True)

    def test_with_confirmed_count(self):
        self.make_registrations()
        RegistrationFactory(event=self.event)
        counts = {e.pk: e.confirmed_count for e in Event.objects.with_confirmed_count()}
        self.assertEqual(counts, {self.event.pk: 4, self.event2.pk: 3})

    def test_confirmed_count_for(self):
        self.make_registrations()
        self.assertEqual(Event.objects.confirmed_count_for(self.event), 3)

    def test_confirmed_count_for_exclude_user(self):
        user = MemberFactory()
        RegistrationFactory.create_batch(2, event=self.event)
        RegistrationFactory(event=self.event, user=user)
        self.assertEqual(Event.objects.confirmed_count_for(self.event, exclude_user=user), 2)
        self.assertEqual(Event.objects.confirmed_count_for(self.event, exclude_user=MemberFactory()), 3)

    def test_networking_live_on(self):
        today = datetime.now(timezone.utc).date()
        start = datetime.combine(today, datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=12)
        live = EventFactory(open_for_networking=True, start_date=start, end_date=start + timedelta(hours=2))
        # Ended yesterday, but started days earlier
        EventFactory(open_for_networking=True, start_date=start - timedelta(days=3),
                     end_date=start - timedelta(days=1))
        # Not open for networking
        EventFactory(start_date=start, end_date=start + timedelta(hours=2))

        self.assertEqual(Event.objects.networking_live_on(today), [live])
