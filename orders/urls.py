from django.urls import path
from . import views

urlpatterns = [
    path('', views.PlaceOrderView.as_view(), name='place_order'),
    path('mine', views.MyOrdersView.as_view(), name='my_orders'),
    path('<uuid:order_id>/', views.OrderDetailView.as_view(), name='order_detail'),
]
