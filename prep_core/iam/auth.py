# prep_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication


def access_cookie_name() -> str:
    return settings.SIMPLE_JWT.get("AUTH_COOKIE", "prep_access")


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Bearer header first; the browser app sends the access token as the
    HttpOnly `prep_access` cookie instead. Anonymous when neither is present.
    """

    def _raw_token(self, request) -> bytes | str | None:
        header = self.get_header(request)
        if header is not None:
            return self.get_raw_token(header)
        return request.COOKIES.get(access_cookie_name()) or None

    def authenticate(self, request):
        raw_token = self._raw_token(request)
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token
