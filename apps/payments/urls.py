from django.urls import path

from . import views

app_name = 'payments'
urlpatterns = [
    path('refunds/<int:pk>/approve/', views.ApproveRefund.as_view(), name='refund_approve'),
    path('refunds/<int:pk>/reject/', views.RejectRefund.as_view(), name='refund_reject'),
]
