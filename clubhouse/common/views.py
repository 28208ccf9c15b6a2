import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import JsonResponse
from django.utils.functional import cached_property
from django.utils.translation import gettext_lazy as _
from django.views.decorators.http import condition

logger = logging.getLogger(__name__)


def alert_response(title, message, status=200, **extra):
    """ Returns a JSON response that the client shows as an alert with the given title and message. """
    return JsonResponse({'title': str(title), 'message': str(message), **extra}, status=status)


class ConditionalMixin:
    """
    Handle ETag and Last-Modified headers.

    Basically a class-based version of the django.views.decorators.http.condition decorator. Subclasses should define
    the etag and/or last_modified (cached) properties.
    """

    @property
    def etag(self):
        return None

    @property
    def last_modified(self):
        return None

    def dispatch(self, *args, **kwargs):
        # Emulate a view function to allow using the @condition decorator to do the heavy lifting
        @condition(etag_func=lambda r: self.etag, last_modified_func=lambda r: self.last_modified)
        def func(request):
            return super(ConditionalMixin, self).dispatch(*args, **kwargs)
        return func(self.request)


class CacheUsingTimestampsMixin(ConditionalMixin):
    """
    Generate and process ETag HTTP headers so clients can cheaply re-fetch after a change notification.

    Subclasses return querysets of all instances used through instances_used(). Each instance should have an
    updated_at field.
    """

    def instances_used(self):
        return None

    @cached_property
    def etag(self):
        query_sets = self.instances_used()
        if query_sets is None:
            return None

        query_sets = [
            # Not all databases support order_by inside union, so clear that
            qs.order_by().values_list('updated_at')
            for qs in query_sets
        ]
        union = query_sets[0].union(*query_sets[1:], all=True)
        updated_ats = union.values_list('updated_at', flat=True)
        if not updated_ats:
            return None
        last_modified = max(updated_ats)
        count = len(updated_ats)

        # Add the user id to handle changing login and the object count to handle deletions (and cancelled rows
        # being superseded).
        return "{}-{}-{}".format(self.request.user.id, count, last_modified.isoformat())


class ApiLoginRequiredMixin(LoginRequiredMixin):
    """ Login check that answers with a JSON alert instead of redirecting to a login page. """

    login_message = _("Please log in to continue")

    def handle_no_permission(self):
        return alert_response(_("Error"), self.login_message, status=401)


class AdminRequiredMixin(ApiLoginRequiredMixin):
    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return self.handle_no_permission()
        if not request.user.is_admin:
            return alert_response(_("Error"), _("Only admins can do this"), status=403)
        return super().dispatch(request, *args, **kwargs)


class AlertActionMixin:
    """
    Runs a POST action and converts its outcome into a single alert.

    Subclasses implement perform(), returning the response on success. ValidationErrors become a 400 alert with the
    error message(s), database errors a retryable 503 alert. Nothing is retried automatically.
    """

    failure_message = _("Something went wrong, please try again")
    error_titles = {}

    def perform(self, request, *args, **kwargs):
        raise NotImplementedError()

    def post(self, request, *args, **kwargs):
        try:
            return self.perform(request, *args, **kwargs)
        except ValidationError as ex:
            return self.validation_error_response(ex)
        except DatabaseError:
            logger.exception("Database error while handling %s", request.path)
            return alert_response(_("Error"), self.failure_message, status=503)

    def validation_error_response(self, ex):
        title = self.error_titles.get(getattr(ex, 'code', None), _("Error"))
        return alert_response(title, " ".join(ex.messages), status=400)
