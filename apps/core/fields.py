from django.conf import settings
from django.db import models


class MonetaryField(models.DecimalField):
    """ A monetary amount, in the currency stored alongside it on the same model. """

    description = "A monetary amount"

    def __init__(self, *args, **kwargs):
        kwargs['decimal_places'] = settings.MONETARY_DECIMAL_PLACES
        kwargs['max_digits'] = settings.MONETARY_MAX_DIGITS
        super().__init__(*args, **kwargs)

    def deconstruct(self):
        # Precision comes from settings, so keep it out of migrations
        name, path, args, kwargs = super().deconstruct()
        del kwargs['decimal_places']
        del kwargs['max_digits']
        return name, path, args, kwargs
