"""
HTML rendering of wiki pages and the edit form.
"""

import logging
from pathlib import Path

import jinja2
import markdown

from wiki.antiforgery import AntiforgeryTokenSet
from wiki.types import Page, PageInput, ValidationResult

logger = logging.getLogger(__name__)

DISPLAY_DATE_FORMAT = "%B %d, %Y"


def render_markdown(text: str) -> str:
    """
    Markdown to HTML. Single line breaks are kept as line breaks.
    """
    return markdown.markdown(
        text,
        extensions=[
            "markdown.extensions.extra",
            "markdown.extensions.nl2br",
            "markdown.extensions.sane_lists",
        ],
    )


def kebab_to_title(name: str) -> str:
    """
    `my-page` -> `My Page`
    """
    return name.replace("-", " ").title()


class PageRenderer:
    """
    Renders the wiki pages using the jinja2 templates.
    """

    def __init__(self):
        self.jinja2_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(Path(__file__).parent / "templates"),
            autoescape=jinja2.select_autoescape(),
        )
        self.jinja2_env.filters["markdown"] = render_markdown
        self.jinja2_env.filters["kebab_title"] = kebab_to_title
        self.jinja2_env.filters["date"] = lambda x: x.strftime(DISPLAY_DATE_FORMAT)

    def sorted_pages(self, all_pages: list[Page]) -> list[Page]:
        return sorted(all_pages, key=lambda page: page.name)

    def render_page(
        self, page: Page, all_pages: list[Page], *, show_last_modified: bool = True
    ) -> str:
        """
        Render a page view: content, last modified date and the edit link.
        """
        template = self.jinja2_env.get_template("page.html")
        return template.render(
            title=page.name,
            page=page,
            show_last_modified=show_last_modified and page.last_modified is not None,
            all_pages=self.sorted_pages(all_pages),
        )

    def render_editor(
        self,
        page_name: str,
        page_input: PageInput,
        all_pages: list[Page],
        tokens: AntiforgeryTokenSet,
        validation: ValidationResult | None = None,
    ) -> str:
        """
        Render the edit form, with the errors of a failed validation if any.
        """
        logger.debug("Rendering editor for page=%s id=%s", page_name, page_input.id)
        template = self.jinja2_env.get_template("editor.html")
        return template.render(
            title=page_name,
            path=page_name,
            page_input=page_input,
            tokens=tokens,
            validation=validation or ValidationResult(),
            all_pages=self.sorted_pages(all_pages),
        )
