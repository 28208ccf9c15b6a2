import reversion
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class AttendanceQuerySet(models.QuerySet):
    def verified(self):
        return self.filter(verified_attendance=True)


class AttendanceManager(models.Manager.from_queryset(AttendanceQuerySet)):
    pass


@reversion.register()
class Attendance(models.Model):
    """
    Attendance verification for a member at an event.

    This is independent of the registration (which can be cancelled and reactivated), and is created lazily on the
    first check-in or when the member first shows their attendance code. It is never deleted.
    """

    event = models.ForeignKey('events.Event', on_delete=models.CASCADE, related_name='attendances')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='attendances')

    verified_attendance = models.BooleanField(verbose_name=_('Attendance verified'), default=False)
    verified_at = models.DateTimeField(verbose_name=_('Verified at'), null=True, blank=True)
    verified_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL,
                                    related_name='+', verbose_name=_('Verified by'))
    marked_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL,
                                  related_name='+', verbose_name=_('Marked by'))

    # Opaque token shown as QR code by the member and scanned at the door. null=True to allow non-unique blank values
    barcode = models.CharField(max_length=64, unique=True, null=True, blank=True, default=None)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    objects = AttendanceManager()

    def __str__(self):
        return _('%(user)s at %(event)s') % {'user': self.user, 'event': self.event}

    class Meta:
        verbose_name = _('attendance')
        verbose_name_plural = _('attendances')

        constraints = [
            models.UniqueConstraint(fields=['event', 'user'], name='one_attendance_per_user_per_event'),
        ]
