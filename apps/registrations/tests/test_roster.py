from datetime import datetime, timedelta, timezone

from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.events.tests.factories import EventFactory
from apps.people.tests.factories import MemberFactory

from ..models import Registration
from ..services import RosterService
from .factories import AttendanceFactory, PlusOneGuestFactory, RegistrationFactory


class TestRoster(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.event = EventFactory()
        cls.admin = MemberFactory(admin=True, first_name="Grace", last_name="Hopper")

    def test_partition(self):
        confirmed = RegistrationFactory.create_batch(2, event=self.event)
        waiting = RegistrationFactory(event=self.event, waiting_list=True)
        pending = RegistrationFactory(event=self.event, pending_refund=True)
        cancelled = RegistrationFactory(event=self.event, cancelled=True)
        RegistrationFactory(cancelled=True)  # Other event

        roster = RosterService.roster(self.event)
        self.assertEqual(roster.confirmed, confirmed + [pending])
        self.assertEqual(roster.waiting_list, [waiting])
        self.assertEqual(roster.cancelled, [cancelled])

    def test_superseded_cancellation_hidden(self):
        """ A member with an active registration is never also listed as cancelled. """
        user = MemberFactory()
        RegistrationFactory(event=self.event, user=user, cancelled=True)
        active = RegistrationFactory(event=self.event, user=user)

        roster = RosterService.roster(self.event)
        self.assertEqual(roster.confirmed, [active])
        self.assertEqual(roster.cancelled, [])

    def test_superseded_cancellation_hidden_for_waiting_list(self):
        user = MemberFactory()
        RegistrationFactory(event=self.event, user=user, cancelled=True)
        active = RegistrationFactory(event=self.event, user=user, waiting_list=True)

        roster = RosterService.roster(self.event)
        self.assertEqual(roster.waiting_list, [active])
        self.assertEqual(roster.cancelled, [])

    def test_member_listed_once(self):
        """ Each member ends up in at most one list, at most once. """
        users = MemberFactory.create_batch(3)
        for user in users:
            RegistrationFactory.create_batch(2, event=self.event, user=user, cancelled=True)
        RegistrationFactory(event=self.event, user=users[0])
        RegistrationFactory(event=self.event, user=users[1], waiting_list=True)

        roster = RosterService.roster(self.event)
        listed = [r.user_id for r in roster.confirmed + roster.waiting_list + roster.cancelled]
        self.assertCountEqual(listed, [u.pk for u in users])

    def test_latest_cancellation_listed(self):
        user = MemberFactory()
        now = datetime.now(timezone.utc)
        RegistrationFactory(event=self.event, user=user, cancelled=True, cancelled_at=now - timedelta(days=2))
        latest = RegistrationFactory(event=self.event, user=user, cancelled=True, cancelled_at=now)
        RegistrationFactory(event=self.event, user=user, cancelled=True, cancelled_at=now - timedelta(days=1))

        roster = RosterService.roster(self.event)
        self.assertEqual(roster.cancelled, [latest])

    def test_positions(self):
        RegistrationFactory.create_batch(3, event=self.event)
        RegistrationFactory.create_batch(2, event=self.event, waiting_list=True)

        roster = RosterService.roster(self.event)
        self.assertEqual([r.position for r in roster.confirmed], [1, 2, 3])
        self.assertEqual([r.position for r in roster.waiting_list], [1, 2])

    def test_cancellation_attribution(self):
        by_self = RegistrationFactory(event=self.event, cancelled=True)
        by_admin = RegistrationFactory(event=self.event, cancelled=True, cancelled_by=self.admin)

        roster = RosterService.roster(self.event)
        entries = {r.pk: r for r in roster.cancelled}
        self.assertTrue(entries[by_self.pk].self_cancelled)
        self.assertIsNone(entries[by_self.pk].cancelled_by_name)
        self.assertFalse(entries[by_admin.pk].self_cancelled)
        self.assertEqual(entries[by_admin.pk].cancelled_by_name, "Grace Hopper")

    def test_attendance_and_guests(self):
        verified, unverified = RegistrationFactory.create_batch(2, event=self.event)
        AttendanceFactory(event=self.event, user=verified.user, verified=True)
        AttendanceFactory(event=self.event, user=unverified.user)
        # Verified at another event
        AttendanceFactory(user=unverified.user, verified=True)
        guest = PlusOneGuestFactory(registration=verified)

        roster = RosterService.roster(self.event)
        entries = {r.pk: r for r in roster.confirmed}
        self.assertTrue(entries[verified.pk].verified_attendance)
        self.assertFalse(entries[unverified.pk].verified_attendance)
        self.assertEqual(entries[verified.pk].plus_one, guest)
        self.assertIsNone(entries[unverified.pk].plus_one)

    def test_stats(self):
        verified, _unverified = RegistrationFactory.create_batch(2, event=self.event)
        AttendanceFactory(event=self.event, user=verified.user, verified=True)
        PlusOneGuestFactory(registration=verified)
        RegistrationFactory(event=self.event, waiting_list=True)
        RegistrationFactory(event=self.event, cancelled=True)

        roster = RosterService.roster(self.event)
        self.assertEqual(roster.confirmed_count, 2)
        self.assertEqual(roster.verified_count, 1)
        self.assertEqual(roster.unverified_count, 1)
        self.assertEqual(roster.waiting_list_count, 1)
        self.assertEqual(roster.cancelled_count, 1)
        self.assertEqual(roster.plus_one_count, 1)

    def test_empty(self):
        roster = RosterService.roster(self.event)
        self.assertEqual(roster, ([], [], []))
        self.assertEqual(roster.verified_count, 0)


class TestRosterMutations(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.event = EventFactory(capacity=1, app_charged=True)
        cls.admin = MemberFactory(admin=True, first_name="Ada", last_name="Byron")
        cls.user = MemberFactory(first_name="Edsger", last_name="Dijkstra")

    def test_add_member(self):
        """ Admins can add members to a full, paid event. """
        RegistrationFactory(event=self.event)

        registration = RosterService.add_member(self.event, self.user)
        registration.refresh_from_db()
        self.assertTrue(registration.state.CONFIRMED)
        self.assertEqual(registration.payment_status, Registration.payment_statuses.COMPLETED.v)
        self.assertTrue(registration.terms_accepted)
        self.assertTrue(registration.cancellation_policy_accepted)

    def test_add_member_reuses_registration(self):
        cancelled = RegistrationFactory(event=self.event, user=self.user, cancelled=True, refund_approved=True)

        registration = RosterService.add_member(self.event, self.user)
        self.assertEqual(registration.pk, cancelled.pk)
        registration.refresh_from_db()
        self.assertTrue(registration.state.CONFIRMED)
        self.assertIsNone(registration.refund_approved)
        self.assertIsNone(registration.cancelled_by)

    def test_add_member_from_waiting_list(self):
        waiting = RegistrationFactory(event=self.event, user=self.user, waiting_list=True)
        registration = RosterService.add_member(self.event, self.user)
        self.assertEqual(registration.pk, waiting.pk)
        self.assertTrue(registration.state.CONFIRMED)

    def test_remove_member(self):
        registration = RegistrationFactory(event=self.event, user=self.user)
        RosterService.remove_member(self.event, self.user, self.admin)

        registration.refresh_from_db()
        self.assertTrue(registration.state.CANCELLED)
        self.assertEqual(registration.cancelled_by, self.admin)
        self.assertIsNotNone(registration.cancelled_at)

    def test_remove_pending_refund(self):
        """ Removing skips the refund flow, refunds are handled separately. """
        registration = RegistrationFactory(event=self.event, user=self.user, pending_refund=True)
        RosterService.remove_member(self.event, self.user, self.admin)
        registration.refresh_from_db()
        self.assertTrue(registration.state.CANCELLED)

    def test_remove_unregistered_member(self):
        RegistrationFactory(event=self.event, user=self.user, cancelled=True)
        with self.assertRaises(ValidationError):
            RosterService.remove_member(self.event, self.user, self.admin)

    def test_search_members(self):
        registered = MemberFactory(first_name="Alan", last_name="Turing")
        cancelled = MemberFactory(first_name="Alan", last_name="Kay")
        free = MemberFactory(first_name="Alan", last_name="Perlis")
        RegistrationFactory(event=self.event, user=registered)
        RegistrationFactory(event=self.event, user=cancelled, cancelled=True)

        results = RosterService.search_members(self.event, "alan")
        self.assertCountEqual(results, [cancelled, free])

    def test_search_members_short_query(self):
        MemberFactory(first_name="Al")
        self.assertEqual(RosterService.search_members(self.event, "a"), [])
