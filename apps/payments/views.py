import reversion
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext_lazy as _
from django.views.generic import View

from apps.registrations.models import Registration
from clubhouse.common.views import AdminRequiredMixin, AlertActionMixin, alert_response

from .services import RefundService


class RefundActionView(AdminRequiredMixin, AlertActionMixin, View):
    http_method_names = ['post']
    error_titles = {
        'refund_failed': _("Refund failed"),
        'refund_conflict': _("Refund needs attention"),
    }

    def get_registration(self):
        return get_object_or_404(Registration, pk=self.kwargs['pk'])


class ApproveRefund(RefundActionView):
    failure_message = _("Failed to process the refund, please try again")

    def perform(self, request, pk):
        # Not atomic, the provider is called outside of any transaction
        with reversion.create_revision(atomic=False):
            reversion.set_user(request.user)
            reversion.set_comment(_("Refund approved via app."))
            registration = RefundService.approve_refund(self.get_registration(), request.user)
        return alert_response(_("Refund processed"), _("The payment was refunded and the registration cancelled."),
                              state=registration.state.v)


class RejectRefund(RefundActionView):
    failure_message = _("Failed to reject the refund request, please try again")

    def perform(self, request, pk):
        with reversion.create_revision():
            reversion.set_user(request.user)
            reversion.set_comment(_("Refund rejected via app."))
            registration = RefundService.reject_refund(self.get_registration(), request.user)
        return alert_response(_("Refund rejected"), _("The refund request was rejected, the registration stays "
                                                     "confirmed."), state=registration.state.v)
