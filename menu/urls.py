from django.urls import path
from . import views

urlpatterns = [
    path('', views.MenuListView.as_view(), name='menu_list'),
    path('<int:item_id>/', views.MenuItemDetailView.as_view(), name='menu_item'),
    path('<int:item_id>/photo', views.MenuPhotoView.as_view(), name='menu_photo'),
]
