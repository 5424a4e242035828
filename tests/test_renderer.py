import datetime
import logging
from unittest import TestCase

from wiki.antiforgery import AntiforgeryTokenSet
from wiki.renderer import PageRenderer, kebab_to_title, render_markdown
from wiki.types import Page, PageInput, ValidationResult

logger = logging.getLogger(__name__)


class TestRenderer(TestCase):
    def setUp(self):
        self.renderer = PageRenderer()
        self.tokens = AntiforgeryTokenSet(request_token="signed", cookie_token="raw")
        self.pages = [Page(id=2, name="zeta"), Page(id=1, name="alpha")]

    def test_render_markdown(self):
        html = render_markdown("# Hi\nline one\nline two")
        self.assertIn("<h1>Hi</h1>", html)
        self.assertIn("<br />", html)

    def test_kebab_to_title(self):
        self.assertEqual(kebab_to_title("my-page"), "My Page")
        self.assertEqual(kebab_to_title("home-page"), "Home Page")

    def test_render_page(self):
        page = Page(
            id=1,
            name="my-page",
            content="Some *text*",
            last_modified=datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc),
        )
        html = self.renderer.render_page(page, self.pages)
        logger.debug("html=%s", html)
        self.assertIn("<title>my-page</title>", html)
        self.assertIn("My Page</h1>", html)
        self.assertIn("<em>text</em>", html)
        self.assertIn("Last modified: May 01, 2024", html)
        self.assertIn('href="/edit?pageName=my-page"', html)
        self.assertLess(html.index('href="/alpha"'), html.index('href="/zeta"'))

    def test_render_page_without_last_modified(self):
        page = Page(
            id=1,
            name="home-page",
            content="Welcome",
            last_modified=datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc),
        )
        html = self.renderer.render_page(page, [], show_last_modified=False)
        self.assertNotIn("Last modified", html)

    def test_render_editor_new_page(self):
        html = self.renderer.render_editor(
            "new-page", PageInput(name="new-page"), self.pages, self.tokens
        )
        self.assertIn('action="/new-page"', html)
        self.assertIn('name="__RequestVerificationToken" value="signed"', html)
        self.assertIn('name="Name" value="new-page"', html)
        self.assertIn('name="Attachment"', html)
        self.assertNotIn('name="Id"', html)
        self.assertIn("easymde", html)

    def test_render_editor_existing_page(self):
        html = self.renderer.render_editor(
            "page", PageInput(id=7, name="page", content="<b>x</b>"), [], self.tokens
        )
        self.assertIn('name="Id" value="7"', html)
        # content is escaped in the textarea
        self.assertIn("&lt;b&gt;x&lt;/b&gt;", html)

    def test_render_editor_errors(self):
        validation = ValidationResult()
        validation.add_error("name", "Name is required")
        validation.add_error("content", "Content is required")
        html = self.renderer.render_editor(
            "page", PageInput(), [], self.tokens, validation
        )
        self.assertIn('<p class="help is-danger">Name is required</p>', html)
        self.assertIn('<p class="help is-danger">Content is required</p>', html)

    def test_side_panel_links_are_encoded(self):
        page = Page(id=1, name="home-page", content="x")
        html = self.renderer.render_page(page, [Page(id=2, name="what?")])
        self.assertIn('href="/what%3F"', html)
