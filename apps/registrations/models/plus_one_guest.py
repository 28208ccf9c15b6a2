import reversion
from django.db import models
from django.utils.translation import gettext_lazy as _


@reversion.register()
class PlusOneGuest(models.Model):
    """
    A non-member companion brought along by a registered member, for events that allow a +1.

    Guests are not removed when the owning registration is cancelled.
    """

    registration = models.OneToOneField('registrations.Registration', on_delete=models.CASCADE,
                                        related_name='plus_one_guest')
    guest_name = models.CharField(verbose_name=_('Name'), max_length=200)
    guest_email = models.EmailField(verbose_name=_('E-mail address'))

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    def __str__(self):
        return _('%(guest)s (+1 of %(user)s)') % {'guest': self.guest_name, 'user': self.registration.user}

    class Meta:
        verbose_name = _('+1 guest')
        verbose_name_plural = _('+1 guests')
