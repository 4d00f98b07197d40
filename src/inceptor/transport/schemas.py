"""Request body schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SourceCodeParams(BaseModel):
    """JSON body of a POST request: ``{"sourceCode": "..."}``.

    ``sourceCode`` is optional and must be a string when present; other
    fields are ignored. A bare ``null`` body reads as an empty object.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_code: str = Field(default="", alias="sourceCode")

    @model_validator(mode="before")
    @classmethod
    def _null_body_is_empty(cls, data: object) -> object:
        return {} if data is None else data

    @field_validator("source_code", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return "" if value is None else value
