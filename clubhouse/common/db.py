class UpdatedAtQuerySetMixin:
    def update(self, **kwargs):
        # Bulk updates skip auto_now fields, the post_save signal (which drives the change feed) and reversion, so
        # all changes must go through Model.save().
        raise NotImplementedError("Update does not set updated_at / auto_now fields")
