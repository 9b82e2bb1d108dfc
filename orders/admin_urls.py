from django.urls import path
from . import views

urlpatterns = [
    path('', views.AdminOrderListView.as_view(), name='admin_orders'),
    path('accept-pending', views.AdminAcceptPendingView.as_view(), name='admin_accept_pending'),
    path('stats', views.AdminOrderStatsView.as_view(), name='admin_order_stats'),
    path('<uuid:order_id>/status', views.AdminOrderStatusView.as_view(), name='admin_order_status'),
]
