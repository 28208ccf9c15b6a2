import os
import sys

from django.test import Client

from apps.events.tests.factories import EventFactory
from apps.people.models import Member

if not os.environ.get('LOCUST_SESSIONS_FILE', False):
    sys.stderr.write("Need LOCUST_SESSIONS_FILE in evironment to do anything, aborting.\n")
    sys.exit(1)

num_events = 2
num_users = 250
capacity = 25


def create_user(email, admin=False):
    user = Member(email=email, first_name="Load", last_name="Test")
    if admin:
        user.is_superuser = True
        user.is_staff = True
    user.set_unusable_password()
    user.save()
    return user


def session_key(user):
    """ Logs in the user through a regular session and returns the session key. """
    client = Client()
    client.force_login(user)
    return client.cookies['sessionid'].value


sys.stdout.write("Creating events...\n")
EventFactory.create_batch(num_events, starts_in_days=100, capacity=capacity)

sys.stdout.write("Creating admin user...\n")
create_user("admin@example.com", admin=True)

keys = []
for i in range(num_users):
    sys.stdout.write("\rCreating users... {}/{}".format(i + 1, num_users))
    sys.stdout.flush()

    user = create_user("user{}@example.com".format(i))
    keys.append(session_key(user))

sys.stdout.write("\n")

with open(os.environ['LOCUST_SESSIONS_FILE'], 'w') as f:
    f.write("\n".join(keys) + "\n")

sys.stdout.write("Done\n")
