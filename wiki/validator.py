"""
Validation of the page edit form.
"""

from wiki.types import PageInput, ValidationResult


class PageInputValidator:
    """
    Checks a submitted page before saving it.

    `page_name` is the page being edited, the home page can not be renamed.
    """

    def __init__(self, page_name: str, home_page_name: str):
        self.page_name = page_name
        self.home_page_name = home_page_name

    def is_home_page(self) -> bool:
        return self.page_name.lower() == self.home_page_name.lower()

    def validate(self, page_input: PageInput) -> ValidationResult:
        """
        Validate the input. All violations are returned, not just the first.
        """
        result = ValidationResult()

        if not page_input.name or not page_input.name.strip():
            result.add_error("name", "Name is required")
        if self.is_home_page() and page_input.name != self.home_page_name:
            result.add_error(
                "name",
                f"You cannot modify home page name. Please keep it {self.home_page_name}",
            )

        if not page_input.content or not page_input.content.strip():
            result.add_error("content", "Content is required")

        return result
