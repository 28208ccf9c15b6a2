import os
import random
import secrets
import string
import threading

from locust import HttpUser, SequentialTaskSet, between, tag, task

"""
This file allows load testing an instance. The instance should be set up as normal (possibly on another machine), then
this script (using the locust tool) will fire requests at it. There is also a preparedb.py script that should be run on
the system-under-test to make sure the right data and member sessions are present to be used by the load testing
script.

# On the system-under-test, prepare the db normally (e.g. migrate), then load data. This writes the session keys of the
# test members to the given file, copy that to the client:
export LOCUST_SESSIONS_FILE=/tmp/locust-sessions.txt
./manage.py flush
./manage.py shell -c 'import tools.locust.preparedb'

# On the client install locust: pip install locust
# Then run with e.g.
    LOCUST_SESSIONS_FILE=/tmp/locust-sessions.txt locust --host https://clubhouse-staging.example --users 50 \
        --spawn-rate 10 --tags register
# And then open http://localhost:8089 to start the test
#
# Some useful shell commands to check and undo the test:

from apps.registrations.models import Registration
from apps.events.models import Event
from django.db.models import Count
# Counts per event (never more confirmed than the capacity)
for e in Event.objects.with_confirmed_count(): print(e, e.confirmed_count, e.capacity)
# Members with more than one active registration for an event (should be empty)
Registration.objects.active().values('user', 'event').annotate(count=Count('pk')).filter(count__gt=1)
# Start over
Registration.objects.all().delete()
"""


def load_sessions():
    with open(os.environ['LOCUST_SESSIONS_FILE']) as f:
        return [line.strip() for line in f if line.strip()]


class ApplicationUser(HttpUser):
    wait_time = between(2, 10)
    next_user_lock = threading.Lock()
    next_user = 0
    sessions = load_sessions()
    # TODO: Generate these using django's reverse?
    dashboard_url = '/'
    events_url = '/events/'
    browse_urls = [
        dashboard_url,
        events_url,
    ]

    def on_start(self):
        cls = self.__class__
        # Locust does not seem to have any way way to assign user credentials, so just keep a counter. This breaks in
        # distributed mode.
        with cls.next_user_lock:
            self.session_key = cls.sessions[cls.next_user % len(cls.sessions)]
            cls.next_user += 1

        self.login()

    def login(self):
        # Django requires referrer for HTTPS requests
        # https://stackoverflow.com/a/34444974/740048
        self.client.headers['Referer'] = self.client.base_url

        # Any secret works as CSRF token, as long as the cookie and header match
        csrftoken = ''.join(secrets.choice(string.ascii_letters + string.digits) for _i in range(32))
        self.client.cookies.set('csrftoken', csrftoken)
        self.client.headers['X-CSRFToken'] = csrftoken
        self.client.cookies.set('sessionid', self.session_key)

        response = self.client.get(self.dashboard_url)
        assert(response.status_code == 200)

    @task
    @tag('browse')
    def browse(self):
        url = random.choice(self.browse_urls)
        response = self.client.get(url, allow_redirects=False)
        assert(response.status_code == 200)

    @tag('register')
    @task
    class RegisterTaskSet(SequentialTaskSet):
        # Aggressive refreshing
        wait_time = between(0, 0)
        use_etag = True

        @task
        def start(self):
            """ Pick an open event to register for. """
            response = self.client.get(self.user.events_url)
            assert(response.status_code == 200)

            events = [
                e for e in response.json()['events']
                if e['registration_state'] is None and not e['registration_closed'] and not e['payment_via_app']
            ]
            # Abort if there is nothing left to register for
            if not events:
                self.interrupt(reschedule=False)

            self.event_id = random.choice(events)['id']
            self.detail_url = '{}{}/'.format(self.user.events_url, self.event_id)
            # Make sure to do at least one proper get in refresh()
            self.refresh_etag = None
            self.refreshes = random.randrange(1, 5)

        @task
        def refresh(self):
            """ Refresh the event a few times, like a client receiving change notices. """
            headers = {}
            valid_responses = [200]

            if self.use_etag and self.refresh_etag:
                headers['If-None-Match'] = self.refresh_etag
                # Not modified
                valid_responses.append(304)

            response = self.client.get(self.detail_url, name="event_detail", headers=headers)
            self.refresh_etag = response.headers.get('ETag', None)
            assert(response.status_code in valid_responses)

            self.refreshes -= 1
            if self.refreshes > 0:
                self.schedule_task(self.refresh)

        @task
        def register(self):
            url = '/registrations/{}/register/'.format(self.event_id)
            response = self.client.post(url, name="register")
            assert(response.status_code == 200)
            assert(response.json()['state'] in ('confirmed', 'waitlisted'))
