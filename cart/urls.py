from django.urls import path
from . import views

urlpatterns = [
    path('', views.CartView.as_view(), name='cart'),
    path('items/', views.CartItemsView.as_view(), name='cart_items'),
    path('items/<int:item_id>/', views.CartItemView.as_view(), name='cart_item'),
]
