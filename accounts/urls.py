from django.urls import path
from . import views

urlpatterns = [
    path('session', views.SessionStateView.as_view(), name='session_state'),
    path('login', views.LoginView.as_view(), name='login'),
    path('register', views.RegisterView.as_view(), name='register'),
    path('guest', views.GuestView.as_view(), name='guest'),
    path('logout', views.LogoutView.as_view(), name='logout'),
    path('reset-password', views.ResetPasswordView.as_view(), name='reset_password'),
    path('set-password', views.SetPasswordView.as_view(), name='set_password'),
    path('confirm-email', views.ConfirmEmailView.as_view(), name='confirm_email'),
    path('profile', views.ProfileView.as_view(), name='profile'),
]
