from rest_framework.permissions import BasePermission

from accounts.session import SessionManager


class HasSessionIdentity(BasePermission):
    """
    Registered user or guest session.

    Everything except the login/landing endpoints sits behind this.
    """
    message = 'Log in or continue as guest first.'

    def has_permission(self, request, view):
        manager = SessionManager(request)
        return manager.user is not None or manager.is_guest


class IsRegisteredUser(BasePermission):
    """
    Signed-in user with a backing identity; guests are turned away
    """
    message = 'A registered account is required.'

    def has_permission(self, request, view):
        return SessionManager(request).user is not None


class IsCanteenAdmin(BasePermission):
    """
    Signed-in user whose profile has the Admin role
    """
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return SessionManager(request).is_admin
