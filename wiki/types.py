"""
Types for the wiki.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Self

from starlette.datastructures import UploadFile


@dataclass
class Attachment:
    """
    An attachment of a page. Declared, but never stored.
    """

    id: int
    last_modified: datetime.datetime
    name: str = ""
    mime_type: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """
        Load an attachment from a dictionary.
        """
        return cls(
            id=data["id"],
            last_modified=datetime.datetime.fromisoformat(data["last_modified"]),
            name=data.get("name", ""),
            mime_type=data.get("mime_type", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the attachment to a JSON-serializable dictionary.
        """
        return {
            "id": self.id,
            "last_modified": self.last_modified.isoformat(),
            "name": self.name,
            "mime_type": self.mime_type,
        }


@dataclass
class Page:
    """
    A wiki page, with a normalized name and markdown content
    """

    name: str = ""
    content: str = ""
    id: int | None = None
    last_modified: datetime.datetime | None = None
    attachments: list[Attachment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict, *, id: int | None = None) -> Self:
        """
        Load a page from its stored document.

        The id lives outside the document, so it can be given apart.
        """
        last_modified = data.get("last_modified", None)
        if last_modified:
            if isinstance(last_modified, str):
                last_modified = datetime.datetime.fromisoformat(last_modified)

        return cls(
            id=id if id is not None else data.get("id"),
            name=data["name"],
            content=data.get("content", ""),
            last_modified=last_modified,
            attachments=[
                Attachment.from_dict(attachment)
                for attachment in data.get("attachments", [])
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the page to a JSON-serializable dictionary.
        """
        return {
            "name": self.name,
            "content": self.content,
            "last_modified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
            "attachments": [attachment.to_dict() for attachment in self.attachments],
        }


@dataclass
class PageInput:
    """
    What the user submitted on the edit form. Never stored as is.
    """

    id: int | None = None
    name: str = ""
    content: str = ""
    attachment: UploadFile | None = None

    @classmethod
    def from_form(cls, form: Any) -> Self:
        """
        Decode the submitted form.

        `Id` is only present when editing an existing page. A non numeric id
        raises ValueError.
        """
        id = form.get("Id")
        page_id = None
        if isinstance(id, str) and id.strip():
            page_id = int(id)

        attachment = form.get("Attachment")
        if not isinstance(attachment, UploadFile) or not attachment.filename:
            attachment = None

        name = form.get("Name")
        content = form.get("Content")
        return cls(
            id=page_id,
            name=name if isinstance(name, str) else "",
            content=content if isinstance(content, str) else "",
            attachment=attachment,
        )


@dataclass
class SaveResult:
    """
    Result of saving a page.

    `page` is the record as written, `previous` the record as it was before
    the write (None when the page was created).
    """

    ok: bool
    page: Page | None = None
    previous: Page | None = None
    error: Exception | None = None


@dataclass
class ValidationResult:
    """
    Field to messages violations. Empty means valid.
    """

    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, field_name: str, message: str):
        """
        Add a violation for a field.
        """
        self.errors.setdefault(field_name, []).append(message)

    def get(self, field_name: str) -> list[str]:
        return self.errors.get(field_name, [])
