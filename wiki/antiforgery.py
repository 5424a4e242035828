"""
Anti-forgery tokens for the edit form.

A random token goes in a cookie, and the same token, signed and timestamped,
goes in a hidden form field. A post is accepted only when both are present
and match.
"""

import hmac
import logging
import re
import secrets
from dataclasses import dataclass

import fastapi
import itsdangerous

logger = logging.getLogger(__name__)

FORM_FIELD_NAME = "__RequestVerificationToken"
COOKIE_NAME = "wiki.antiforgery"

# what secrets.token_urlsafe(32) produces
COOKIE_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]{43}")


def is_cookie_token(value: str | None) -> bool:
    """
    Check the cookie holds a token we could have issued.
    """
    return value is not None and COOKIE_TOKEN_RE.fullmatch(value) is not None


class AntiforgeryValidationError(Exception):
    """
    The request does not carry a valid anti-forgery token.
    """


@dataclass
class AntiforgeryTokenSet:
    """
    Tokens for one form: the signed one for the form, the raw one for the cookie.
    """

    request_token: str
    cookie_token: str
    form_field_name: str = FORM_FIELD_NAME


class Antiforgery:
    """
    Issues and validates anti-forgery tokens.
    """

    def __init__(self, secret_key: str, *, max_age: int = 2 * 60 * 60, secure: bool = False):
        if not secret_key:
            raise ValueError("Anti-forgery needs a secret key")
        self.serializer = itsdangerous.URLSafeTimedSerializer(
            secret_key, salt="wiki.antiforgery"
        )
        self.max_age = max_age
        self.secure = secure

    def get_tokens(self, request: fastapi.Request) -> AntiforgeryTokenSet:
        """
        Get the tokens for a new form, reusing the cookie token if the browser has one.
        """
        cookie_token = request.cookies.get(COOKIE_NAME)
        if not is_cookie_token(cookie_token):
            cookie_token = secrets.token_urlsafe(32)
        return AntiforgeryTokenSet(
            request_token=self.serializer.dumps(cookie_token),
            cookie_token=cookie_token,
        )

    def store_tokens(self, response: fastapi.Response, tokens: AntiforgeryTokenSet):
        """
        Set the cookie half of the tokens on the response.
        """
        response.set_cookie(
            COOKIE_NAME,
            tokens.cookie_token,
            httponly=True,
            samesite="strict",
            secure=self.secure,
        )

    async def validate_request(self, request: fastapi.Request):
        """
        Check the posted form token against the cookie token.

        Raises AntiforgeryValidationError if not valid.
        """
        form = await request.form()
        request_token = form.get(FORM_FIELD_NAME)
        cookie_token = request.cookies.get(COOKIE_NAME)
        if not cookie_token:
            raise AntiforgeryValidationError("Missing anti-forgery cookie")
        if not is_cookie_token(cookie_token):
            raise AntiforgeryValidationError("Malformed anti-forgery cookie")
        if not isinstance(request_token, str) or not request_token:
            raise AntiforgeryValidationError("Missing anti-forgery form field")

        try:
            expected = self.serializer.loads(request_token, max_age=self.max_age)
        except itsdangerous.BadSignature as e:
            raise AntiforgeryValidationError(f"Invalid anti-forgery token: {e}") from e

        if not isinstance(expected, str) or not hmac.compare_digest(
            expected.encode(), cookie_token.encode()
        ):
            raise AntiforgeryValidationError("Anti-forgery token does not match cookie")
        logger.debug("Anti-forgery token accepted for %s", request.url.path)
