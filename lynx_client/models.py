"""
Data models for LYNX backend payloads.

The backend mixes camelCase and snake_case field names; the models accept
both and emit the spelling the backend reads.
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

IconType = Literal["emoji", "image", "svg"]
CardSize = Literal["small", "medium", "large"]


class Profile(BaseModel):
    """Public profile shown above the cards."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    bio: str = ""
    avatar: str = ""
    social_links: dict[str, str] = Field(default_factory=dict, alias="socialLinks")
    show_avatar: bool = Field(default=True, alias="showAvatar")
    name_font_size: Optional[str] = Field(default=None, alias="nameFontSize")
    bio_font_size: Optional[str] = Field(default=None, alias="bioFontSize")
    tab_title: Optional[str] = Field(default=None, alias="tabTitle")
    meta_description: Optional[str] = Field(default=None, alias="metaDescription")

    @model_validator(mode="before")
    @classmethod
    def normalize_show_avatar(cls, data: Any) -> Any:
        """Map the numeric ``show_avatar`` flag (0/1) onto a bool.

        ``show_avatar`` wins over ``showAvatar``; a missing flag means True.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("show_avatar") is not None:
            data["show_avatar"] = data["show_avatar"] not in (0, False, "0")
            data.pop("showAvatar", None)
        elif data.get("showAvatar") is not None:
            data["show_avatar"] = bool(data.pop("showAvatar"))
        else:
            data.pop("show_avatar", None)
            data.pop("showAvatar", None)
        if data.get("social_links") is None and data.get("socialLinks") is None:
            data.pop("social_links", None)
            data.pop("socialLinks", None)
        return data

    def to_payload(self) -> dict[str, Any]:
        """Body for ``PUT /profile``."""
        payload: dict[str, Any] = {
            "name": self.name,
            "bio": self.bio,
            "avatar": self.avatar,
            "social_links": self.social_links,
            "socialLinks": self.social_links,
            "show_avatar": 1 if self.show_avatar else 0,
            "showAvatar": self.show_avatar,
        }
        for field in ("name_font_size", "bio_font_size", "tab_title", "meta_description"):
            value = getattr(self, field)
            if value:
                payload[field] = value
        return payload


class TextItem(BaseModel):
    """One line of a text card, optionally linked."""

    text: str
    url: Optional[str] = None


class LinkItem(BaseModel):
    """A link or text card in the ordered card list."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: str = ""
    description: str = ""
    url: str = ""
    type: str = "link"
    icon: Optional[str] = None
    icon_type: Optional[IconType] = Field(default=None, alias="iconType")
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    text_color: Optional[str] = Field(default=None, alias="textColor")
    size: Optional[CardSize] = None
    content: Optional[str] = None
    text_items: Optional[list[TextItem]] = Field(default=None, alias="textItems")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("text_items", mode="before")
    @classmethod
    def coerce_text_items(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [{"text": item} if isinstance(item, str) else item for item in v]
        return v

    def to_payload(self) -> dict[str, Any]:
        """Body entry for ``PUT /links``."""
        return self.model_dump(by_alias=True, exclude_none=True)
