"""Pydantic model for one extracted wanted-person record."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WantedRecord(BaseModel):
    """Fields extracted from one detail page.

    Attribute names are snake_case; each field's alias is the column name
    used in exported tables. Unset fields are None.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        "",
        alias="Id",
        description="Reserved for a stable identifier; always empty",
    )
    name: str | None = Field(None, alias="Name", description="Full name")
    sex: str | None = Field(None, alias="Sex")
    date_of_birth: str | None = Field(
        None, alias="DateOfBirth", description="Date(s) of birth used"
    )
    place_of_birth: str | None = Field(None, alias="PlaceOfBirth")
    nationality: str | None = Field(None, alias="Nationality")
    place_of_case: str | None = Field(
        None, alias="PlaceOfCase", description="Second line of the summary"
    )
    date_of_case: str | None = Field(
        None, alias="DateOfCase", description="First line of the summary"
    )
    details: str | None = Field(None, alias="Details")
    height: str | None = Field(None, alias="Height")
    weight: str | None = Field(None, alias="Weight")
    hair: str | None = Field(None, alias="Hair")
    eyes: str | None = Field(None, alias="Eyes")
    race: str | None = Field(None, alias="Race")
    reward: str | None = Field(None, alias="Reward")
    field_office: str | None = Field(None, alias="FieldOffice")
    pic_url: str | None = Field(
        None, alias="PicUrl", description="Primary image source URL"
    )
    pic_base64: str | None = Field(
        None, alias="PicBase64", description="Primary image, base64 encoded"
    )
    additional_pic_url: str | None = Field(None, alias="AdditionalPicUrl")
    additional_pic_base64: str | None = Field(
        None, alias="AdditionalPicBase64"
    )
    source: str = Field(
        ..., alias="Source", description="Detail page URL this came from"
    )

    @classmethod
    def columns(cls) -> tuple[str, ...]:
        """Every export column name, in field order."""
        return tuple(
            info.alias or name for name, info in cls.model_fields.items()
        )

    def get(self, column: str, default: Any = None) -> Any:
        """Return the value for an export column name (or attribute name)."""
        values = self.model_dump(by_alias=True)
        if column in values:
            return values[column]
        if column in type(self).model_fields:
            return getattr(self, column)
        return default
