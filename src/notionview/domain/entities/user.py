"""Notion user entity."""

from dataclasses import dataclass
from typing import Any

from notionview.domain.entities.record import unwrap_record


@dataclass
class NotionUser:
    """A workspace member, resolved through a batched ``notion_user`` lookup.

    Attributes:
        id: User UUID.
        first_name: Given name.
        last_name: Family name.
        profile_photo: Avatar URL, if set.
    """

    id: str
    first_name: str | None = None
    last_name: str | None = None
    profile_photo: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @classmethod
    def from_record(cls, record: Any) -> "NotionUser | None":
        value, _ = unwrap_record(record)
        if value is None:
            return None
        return cls(
            id=value["id"],
            first_name=value.get("given_name"),
            last_name=value.get("family_name"),
            profile_photo=value.get("profile_photo"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "profilePhoto": self.profile_photo,
        }
