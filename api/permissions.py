"""
Permission classes for storefront routes
"""
from rest_framework.permissions import BasePermission


class IsAuthenticatedUser(BasePermission):
    message = 'Authentication credentials were not provided.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)


class IsAdminRole(BasePermission):
    message = 'Administrator role required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'is_admin', False))
