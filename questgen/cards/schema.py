"""
Card Record Schemas - Pydantic models for authored card JSON.

Authored data uses the authoring tools' field names (CardName, TypeTags,
Instructions, ...). These models validate and normalize a record before it
becomes a runtime Card.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator


class InstructionRecord(BaseModel):
    """One entry of a card's Instructions array."""
    target_deck: str = Field(default="", alias="TargetDeck")
    tags: list[str] = Field(default_factory=list, alias="Tags")
    face_down: bool = Field(default=False, alias="faceDown")
    kind: str = Field(default="Modify", alias="Type")
    subtype: str = Field(default="Add", alias="Subtype")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        return _as_tag_list(value)


class CardRecord(BaseModel):
    """An authored card as stored in the card JSON."""
    name: str = Field(alias="CardName", min_length=1)
    deck: str = Field(default="", alias="Deck")
    type_tags: list[str] = Field(default_factory=list, alias="TypeTags")
    aspect_tags: list[str] = Field(default_factory=list, alias="AspectTags")
    mutable_tags: list[str] = Field(default_factory=list, alias="mutableTags")
    instructions: list[InstructionRecord] = Field(default_factory=list, alias="Instructions")
    target_requirement: list[str] = Field(default_factory=list, alias="TargetRequirement")
    card_id: Optional[str] = Field(default=None, alias="id")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @field_validator("type_tags", "aspect_tags", "mutable_tags", "target_requirement", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        return _as_tag_list(value)

    @field_validator("instructions", mode="before")
    @classmethod
    def _instructions_list(cls, value: Any) -> Any:
        # Authoring tools have written a single object or a string here
        if isinstance(value, dict):
            return [value]
        if not isinstance(value, list):
            return []
        return value

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def _as_tag_list(value: Any) -> Any:
    """Accept null, a comma-separated string, or a list of tags."""
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value
