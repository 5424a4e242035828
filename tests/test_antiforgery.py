import secrets
import urllib.parse

import fastapi
import itsdangerous

from wiki.antiforgery import (
    COOKIE_NAME,
    FORM_FIELD_NAME,
    Antiforgery,
    AntiforgeryValidationError,
)
from tests.base import TestCase


def make_request(cookies: dict[str, str] | None = None) -> fastapi.Request:
    cookie_header = "; ".join(f"{k}={v}" for k, v in (cookies or {}).items())
    headers = [(b"cookie", cookie_header.encode())] if cookie_header else []
    return fastapi.Request({"type": "http", "method": "GET", "headers": headers})


def make_post(cookies: dict[str, str], form: dict[str, str]) -> fastapi.Request:
    body = urllib.parse.urlencode(form).encode()
    cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
    headers = [
        (b"content-type", b"application/x-www-form-urlencoded"),
        (b"cookie", cookie_header.encode()),
    ]

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/page",
        "query_string": b"",
        "headers": headers,
    }
    return fastapi.Request(scope, receive)


class TestAntiforgery(TestCase):
    def setUp(self):
        super().setUp()
        self.antiforgery = Antiforgery("test-secret")

    def test_needs_secret(self):
        with self.assertRaises(ValueError):
            Antiforgery("")

    def test_new_tokens(self):
        tokens = self.antiforgery.get_tokens(make_request())
        self.assertTrue(tokens.cookie_token)
        self.assertEqual(tokens.form_field_name, "__RequestVerificationToken")
        self.assertEqual(
            self.antiforgery.serializer.loads(tokens.request_token), tokens.cookie_token
        )

    def test_reuses_cookie(self):
        cookie_token = secrets.token_urlsafe(32)
        tokens = self.antiforgery.get_tokens(make_request({COOKIE_NAME: cookie_token}))
        self.assertEqual(tokens.cookie_token, cookie_token)

    def test_does_not_reuse_foreign_cookie(self):
        tokens = self.antiforgery.get_tokens(make_request({COOKIE_NAME: "abc"}))
        self.assertNotEqual(tokens.cookie_token, "abc")
        self.assertEqual(len(tokens.cookie_token), 43)

    def test_store_tokens(self):
        tokens = self.antiforgery.get_tokens(make_request())
        response = fastapi.Response()
        self.antiforgery.store_tokens(response, tokens)
        cookie = response.headers["set-cookie"]
        self.assertIn(f"{COOKIE_NAME}={tokens.cookie_token}", cookie)
        self.assertIn("HttpOnly", cookie)
        self.assertIn("SameSite=strict", cookie)

    def test_other_secret_does_not_validate(self):
        tokens = Antiforgery("other-secret").get_tokens(make_request())
        with self.assertRaises(itsdangerous.BadSignature):
            self.antiforgery.serializer.loads(tokens.request_token)

    async def test_validate(self):
        tokens = self.antiforgery.get_tokens(make_request())
        request = make_post(
            {COOKIE_NAME: tokens.cookie_token},
            {FORM_FIELD_NAME: tokens.request_token},
        )
        await self.antiforgery.validate_request(request)

    async def test_validate_other_cookie(self):
        tokens = self.antiforgery.get_tokens(make_request())
        request = make_post(
            {COOKIE_NAME: secrets.token_urlsafe(32)},
            {FORM_FIELD_NAME: tokens.request_token},
        )
        with self.assertRaises(AntiforgeryValidationError):
            await self.antiforgery.validate_request(request)

    async def test_validate_expired(self):
        antiforgery = Antiforgery("test-secret", max_age=-1)
        tokens = antiforgery.get_tokens(make_request())
        request = make_post(
            {COOKIE_NAME: tokens.cookie_token},
            {FORM_FIELD_NAME: tokens.request_token},
        )
        with self.assertRaises(AntiforgeryValidationError):
            await antiforgery.validate_request(request)

    async def test_validate_malformed_cookie(self):
        tokens = self.antiforgery.get_tokens(make_request())
        request = make_post(
            {COOKIE_NAME: "x" * 500},
            {FORM_FIELD_NAME: tokens.request_token},
        )
        with self.assertRaises(AntiforgeryValidationError):
            await self.antiforgery.validate_request(request)
