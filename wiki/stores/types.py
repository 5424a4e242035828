from wiki.types import Page, PageInput, SaveResult


def normalize_name(name: str) -> str:
    """
    Normalize a page name: trimmed, spaces as hyphens and lowercase.
    """
    return name.strip().replace(" ", "-").lower()


class PageStoreBase:
    """
    Base class for all page stores.
    """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"

    async def list_all_pages(self) -> list[Page]:
        """
        Get all pages.
        """
        raise NotImplementedError(
            f"list_all_pages not implemented in {self.__class__.__name__}"
        )

    async def get_page(self, name: str) -> Page | None:
        """
        Get a page by name, ignoring case.
        """
        raise NotImplementedError(
            f"get_page not implemented in {self.__class__.__name__}"
        )

    async def save_page(self, page_input: PageInput) -> SaveResult:
        """
        Insert or update a page.
        """
        raise NotImplementedError(
            f"save_page not implemented in {self.__class__.__name__}"
        )
