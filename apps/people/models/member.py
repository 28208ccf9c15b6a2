import reversion
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from clubhouse.common.db import UpdatedAtQuerySetMixin


class MemberQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    MIN_SEARCH_LENGTH = 2
    MAX_SEARCH_RESULTS = 10

    def search(self, query):
        """
        Case-insensitive search on (first, last or full) name.

        Queries shorter than MIN_SEARCH_LENGTH return nothing, and at most MAX_SEARCH_RESULTS members are returned.
        """
        query = query.strip()
        if len(query) < self.MIN_SEARCH_LENGTH:
            return self.none()

        q = Q(first_name__icontains=query) | Q(last_name__icontains=query)
        first, _sep, last = query.partition(' ')
        if last:
            q |= Q(first_name__icontains=first, last_name__icontains=last)
        return self.filter(q).order_by('first_name', 'last_name', 'pk')[:self.MAX_SEARCH_RESULTS]


class MemberManager(BaseUserManager.from_queryset(MemberQuerySet)):
    use_in_migrations = True

    def get_by_natural_key(self, email):
        return self.get(email=email)

    def create_user(self, email, password=None, **extra_fields):
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save()
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


# For reference to this model, see
# https://docs.djangoproject.com/en/stable/topics/auth/customizing/#referencing-the-user-model
@reversion.register()
class Member(AbstractBaseUser, PermissionsMixin):
    first_name = models.CharField(_('first name'), max_length=30, blank=True)
    last_name = models.CharField(_('last name'), max_length=150, blank=True)
    email = models.EmailField(_('email address'), max_length=settings.ACCOUNT_EMAIL_MAX_LENGTH, unique=True)

    is_staff = models.BooleanField(
        _('staff status'),
        default=False,
        help_text=_('Designates whether the user can log into this admin site and manage events.'),
    )

    is_active = models.BooleanField(
        _('active'),
        default=True,
        help_text=_(
            'Designates whether this user should be treated as active. '
            'Unselect this instead of deleting accounts.',
        ),
    )

    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    # Onboarding progress, shown as hints in the app
    has_viewed_events = models.BooleanField(verbose_name=_('Has viewed events'), default=False)
    has_joined_event = models.BooleanField(verbose_name=_('Has joined an event'), default=False)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    objects = MemberManager()

    EMAIL_FIELD = 'email'
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    @property
    def is_admin(self):
        """ Whether this member may manage events, rosters and refunds. """
        return self.is_active and self.is_staff

    @property
    def full_name(self):
        return self.get_full_name()

    def get_full_name(self):
        """Return the first_name plus the last_name, with a space in between."""
        full_name = '%s %s' % (self.first_name, self.last_name)
        full_name = full_name.strip()
        if not full_name:
            full_name = self.email
        return full_name

    def get_short_name(self):
        return self.first_name or self.email

    def mark_viewed_events(self):
        if not self.has_viewed_events:
            self.has_viewed_events = True
            self.save(update_fields=['has_viewed_events', 'updated_at'])

    def mark_joined_event(self):
        """ Records onboarding progress after the first event registration. """
        if self.has_viewed_events and not self.has_joined_event:
            self.has_joined_event = True
            self.save(update_fields=['has_joined_event', 'updated_at'])

    def __str__(self):
        return self.get_full_name()

    def natural_key(self):
        return (self.email,)

    class Meta:
        verbose_name = _('member')
        verbose_name_plural = _('members')
