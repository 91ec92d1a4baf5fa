"""Typed models for the subset of Swagger 2.0 schemas found in the corpus.

Definitions are parsed once into :class:`SchemaNode` instances so the rest of
the generator works with typed accessors instead of walking raw JSON.
Unknown keywords are kept as pydantic extras and otherwise ignored.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ['SchemaKind', 'SchemaNode', 'XMsEnum']


class SchemaKind(str, Enum):
    """Shape of a schema node, derived from its keywords."""

    REFERENCE = 'reference'
    OBJECT = 'object'
    ARRAY = 'array'
    STRING = 'string'
    INTEGER = 'integer'
    NUMBER = 'number'
    BOOLEAN = 'boolean'
    NULL = 'null'
    UNKNOWN = 'unknown'


class XMsEnum(BaseModel):
    """The `x-ms-enum` vendor extension."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    name: Optional[str] = None
    model_as_string: Optional[bool] = Field(None, alias='modelAsString')


class SchemaNode(BaseModel):
    """A parsed Swagger 2.0 schema.

    Only the keywords the generator acts on are modelled. Everything else
    survives in ``model_extra`` so nothing is lost when a node is dumped back.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    ref: Optional[str] = Field(None, alias='$ref')
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[list[Any]] = None
    x_ms_enum: Optional[XMsEnum] = Field(None, alias='x-ms-enum')
    properties: dict[str, 'SchemaNode'] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    all_of: list['SchemaNode'] = Field(default_factory=list, alias='allOf')
    additional_properties: Optional[Union[bool, 'SchemaNode']] = Field(
        None, alias='additionalProperties'
    )
    items: Optional['SchemaNode'] = None

    @field_validator('type', mode='before')
    @classmethod
    def _first_non_null_type(cls, value: Any) -> Any:
        # JSON schema allows a list of types, e.g. ["string", "null"]
        if isinstance(value, list):
            non_null = [item for item in value if item != 'null']
            return non_null[0] if non_null else 'null'
        return value

    @field_validator('required', mode='before')
    @classmethod
    def _required_as_list(cls, value: Any) -> Any:
        # Some specs put `required: true` on properties, which is not a list
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    @field_validator('items', mode='before')
    @classmethod
    def _single_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else None
        return value

    @field_validator('enum', mode='before')
    @classmethod
    def _enum_as_list(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, list):
            return None
        return value

    @property
    def kind(self) -> SchemaKind:
        if self.ref is not None:
            return SchemaKind.REFERENCE
        if self.type is None:
            if self.properties or self.all_of or self.additional_properties:
                return SchemaKind.OBJECT
            return SchemaKind.UNKNOWN
        try:
            kind = SchemaKind(self.type)
        except ValueError:
            return SchemaKind.UNKNOWN
        # only $ref makes a reference
        return SchemaKind.UNKNOWN if kind is SchemaKind.REFERENCE else kind

    @property
    def enum_name(self) -> str | None:
        """The `x-ms-enum` name, if the node declares one."""
        if self.x_ms_enum is not None and self.x_ms_enum.name:
            return self.x_ms_enum.name
        return None

    @property
    def is_string_enum(self) -> bool:
        return bool(self.enum) and self.type in (None, 'string')

    @property
    def is_inline_enum(self) -> bool:
        """True for `{type: string, enum: [...], x-ms-enum: {name: ...}}`."""
        return self.type == 'string' and bool(self.enum) and self.enum_name is not None

    @property
    def is_record(self) -> bool:
        """True when the node describes an object with named fields."""
        if self.ref is not None:
            return False
        if self.properties or self.all_of:
            return True
        return self.type == 'object' and self.additional_properties is None

    def wire_values(self) -> list[str]:
        """Enum values as strings, skipping nulls and keeping first occurrences."""
        values: list[str] = []
        for value in self.enum or []:
            if value is None:
                continue
            text = value if isinstance(value, str) else str(value)
            if text not in values:
                values.append(text)
        return values


SchemaNode.model_rebuild()
