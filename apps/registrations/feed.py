"""
Change feed for registrations.

Every saved or deleted registration sends `registrations_changed` for its event, once the transaction commits.
Receivers only learn which event changed and are expected to re-fetch whatever they show, no delta is delivered.
Clients of the JSON api do the same by re-fetching the event detail, whose ETag keeps that cheap.

The cached confirmed count of an event is kept fresh by a receiver of this signal.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from .models import Registration

logger = logging.getLogger(__name__)

# Sent with sender=Registration and event_id, after commit
registrations_changed = Signal()


def count_cache_key(event_id):
    return 'registrations:confirmed_count:{}'.format(event_id)


def confirmed_count(event_id):
    """ Returns the (cached) number of confirmed registrations for the given event, for display purposes. """
    return cache.get_or_set(
        count_cache_key(event_id),
        lambda: Registration.objects.confirmed().filter(event=event_id).count(),
        settings.REGISTRATION_COUNT_CACHE_TIMEOUT,
    )


def publish(event_id):
    responses = registrations_changed.send_robust(sender=Registration, event_id=event_id)
    for receiver_func, response in responses:
        if isinstance(response, Exception):
            logger.error("Registration change receiver %r failed for event %s", receiver_func, event_id,
                         exc_info=response)


@receiver(registrations_changed, sender=Registration, dispatch_uid='registration_count_invalidate')
def invalidate_confirmed_count(sender, event_id, **kwargs):
    cache.delete(count_cache_key(event_id))


@receiver(post_save, sender=Registration, dispatch_uid='registration_feed_save')
@receiver(post_delete, sender=Registration, dispatch_uid='registration_feed_delete')
def registration_changed(sender, instance, **kwargs):
    event_id = instance.event_id
    # Invalidate right away too, so reads later in this same transaction are not served a stale count
    cache.delete(count_cache_key(event_id))
    transaction.on_commit(lambda: publish(event_id))
