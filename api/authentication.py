"""
Bearer token authentication for the REST API
"""
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from apps.accounts.services import AuthService
from apps.core.config import get_store_config
from apps.core.exceptions import AuthorizationException


class BearerTokenAuthentication(BaseAuthentication):
    """
    ``Authorization: Bearer <jwt>``. Requests without the header stay anonymous;
    a present but invalid token is rejected outright.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid token header')

        try:
            user = AuthService(get_store_config()).resolve_token(token)
        except AuthorizationException as e:
            raise exceptions.AuthenticationFailed(e.message)

        return user, token

    def authenticate_header(self, request):
        return self.keyword
