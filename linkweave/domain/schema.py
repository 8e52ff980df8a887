"""
Record type schema for linkweave.

A schema maps each record type name to its field descriptors. Descriptors are
frozen pydantic models so that relationship metadata is read through
attributes rather than string flag lookups. `RecordTypes` checks on
construction that every declared inverse actually points back.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from linkweave.domain.errors import SchemaError

PRIMARY_KEY = "id"

PrimitiveKind = Literal["string", "number", "integer", "boolean", "date", "object", "buffer"]


class FieldDescriptor(BaseModel):
    """
    Declared constraints and relationship metadata for a single field.
    """

    link: Optional[str] = Field(None, description="Record type this field references.")
    inverse: Optional[str] = Field(None, description="Field on the linked type pointing back.")
    is_array: bool = Field(False, alias="isArray", description="Whether the field holds a list.")
    denormalized_inverse: bool = Field(
        False,
        alias="denormalizedInverse",
        description="Cached inverse-side data; never written by clients.",
    )
    type: Optional[PrimitiveKind] = Field(None, description="Primitive kind of non-link fields.")
    required: bool = Field(False, description="Whether the field must be present on create.")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    @model_validator(mode="after")
    def _check_shape(self) -> "FieldDescriptor":
        if self.link and self.type:
            raise ValueError("a field cannot declare both 'link' and 'type'")
        if self.inverse and not self.link:
            raise ValueError("'inverse' requires 'link'")
        return self

    @property
    def is_link(self) -> bool:
        return self.link is not None


Fields = Dict[str, FieldDescriptor]


class RecordTypes(Mapping[str, Fields]):
    """
    Read-only registry of record types.

    Parameters
    ----------
    definitions : Mapping[str, Mapping[str, Any]]
        Type name to field name to descriptor (a `FieldDescriptor` or a plain
        mapping using either attribute or wire names, e.g. ``isArray``).

    Raises
    ------
    SchemaError
        If a descriptor is malformed, a link targets an unknown type, or an
        inverse pair does not reference itself symmetrically.
    """

    def __init__(self, definitions: Mapping[str, Mapping[str, Any]]) -> None:
        types: Dict[str, Fields] = {}
        for type_name, fields in definitions.items():
            if PRIMARY_KEY in fields:
                raise SchemaError(f"Type '{type_name}' may not redeclare '{PRIMARY_KEY}'.")
            parsed: Fields = {}
            for field_name, descriptor in fields.items():
                try:
                    parsed[field_name] = (
                        descriptor
                        if isinstance(descriptor, FieldDescriptor)
                        else FieldDescriptor.model_validate(descriptor)
                    )
                except PydanticValidationError as exc:
                    raise SchemaError(
                        f"Invalid descriptor for '{type_name}.{field_name}': {exc}"
                    ) from exc
            types[type_name] = parsed
        self._types = types
        self._check_links()

    def _check_links(self) -> None:
        for type_name, fields in self._types.items():
            for field_name, descriptor in fields.items():
                if not descriptor.link:
                    continue
                if descriptor.link not in self._types:
                    raise SchemaError(
                        f"'{type_name}.{field_name}' links to undefined type '{descriptor.link}'."
                    )
                if not descriptor.inverse:
                    continue
                inverse = self._types[descriptor.link].get(descriptor.inverse)
                if inverse is None:
                    raise SchemaError(
                        f"Inverse field '{descriptor.link}.{descriptor.inverse}' of "
                        f"'{type_name}.{field_name}' is not defined."
                    )
                if inverse.link != type_name or inverse.inverse != field_name:
                    raise SchemaError(
                        f"Inverse field '{descriptor.link}.{descriptor.inverse}' must link "
                        f"to '{type_name}' with inverse '{field_name}'."
                    )

    @classmethod
    def from_file(cls, path: Path | str) -> "RecordTypes":
        """Load record types from a JSON document."""
        with Path(path).open("r", encoding="utf-8") as f:
            definitions = json.load(f)
        if not isinstance(definitions, dict):
            raise SchemaError(f"Schema file '{path}' must contain a JSON object.")
        return cls(definitions)

    def __getitem__(self, type_name: str) -> Fields:
        return self._types[type_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def fields(self, type_name: str) -> Fields:
        """Field descriptors for a type; unknown types raise KeyError."""
        return self._types[type_name]

    def links(self, type_name: str) -> List[str]:
        """Names of the link fields of a type, in declaration order."""
        return [name for name, field in self._types[type_name].items() if field.is_link]

    def denormalized_fields(self, type_name: str) -> List[str]:
        return [
            name for name, field in self._types[type_name].items() if field.denormalized_inverse
        ]

    def inverse_is_array(self, type_name: str, field_name: str) -> bool:
        """Whether the inverse of `type_name.field_name` holds a list of ids."""
        descriptor = self._types[type_name][field_name]
        if not descriptor.link or not descriptor.inverse:
            raise KeyError(f"'{type_name}.{field_name}' has no declared inverse")
        return self._types[descriptor.link][descriptor.inverse].is_array


__all__ = [
    "FieldDescriptor",
    "Fields",
    "PRIMARY_KEY",
    "PrimitiveKind",
    "RecordTypes",
]
