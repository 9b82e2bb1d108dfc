from django.urls import path
from . import views

urlpatterns = [
    path('', views.AdminUserListView.as_view(), name='admin_users'),
    path('stats', views.AdminUserStatsView.as_view(), name='admin_user_stats'),
    path('<int:user_id>/', views.AdminUserDetailView.as_view(), name='admin_user'),
    path('<int:user_id>/role', views.AdminUserRoleView.as_view(), name='admin_user_role'),
]
