"""Run-scoped registry of output type names.

This module provides the TypeRegistry class which hands out collision-free
output names for definitions and inline enums during one generation run.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from azsdkgen.codegen.spec_index import DefinitionKey
from azsdkgen.codegen.utils import sanitize_identifier, type_name, unique_name


@dataclass
class TypeInfo:
    """Information about a registered output name.

    Attributes:
        name: The output type name.
        key: The definition behind the name, or None for an inline enum.
        inline_enum: The cleaned x-ms-enum name for inline enums.
        is_enum: Whether the type is an enumeration.
    """

    name: str
    key: DefinitionKey | None
    inline_enum: str | None
    is_enum: bool


class TypeRegistry:
    """Assigns and remembers output names for one generation run.

    A definition always receives the same name no matter how often or from
    which file it is referenced. Names are derived with ``type_name`` and
    made unique with a numeric suffix if two different owners would
    otherwise collide. An inline enum whose name is already taken by another
    enum reuses that type instead of producing a second one.

    Example:
        >>> registry = TypeRegistry(index.duplicate_names)
        >>> registry.name_for_definition(key).name
        'UserProfile'
    """

    def __init__(self, duplicates: frozenset[str] | set[str] = frozenset()):
        """Initialize an empty registry.

        Args:
            duplicates: Bare definition names defined in more than one file.
        """
        self.duplicates = duplicates
        self._types: dict[str, TypeInfo] = {}
        self._by_key: dict[DefinitionKey, str] = {}
        self._by_inline_enum: dict[str, str] = {}

    def name_for_definition(self, key: DefinitionKey, is_enum: bool = False) -> TypeInfo:
        """Return (registering on first use) the output name of a definition."""
        if key in self._by_key:
            return self._types[self._by_key[key]]

        name = unique_name(type_name(key.name, key.source_file, self.duplicates), set(self._types))
        info = TypeInfo(name=name, key=key, inline_enum=None, is_enum=is_enum)
        self._types[name] = info
        self._by_key[key] = name
        return info

    def name_for_inline_enum(self, cleaned_name: str) -> TypeInfo:
        """Return (registering on first use) the output name of an inline enum."""
        if cleaned_name in self._by_inline_enum:
            return self._types[self._by_inline_enum[cleaned_name]]

        base = sanitize_identifier(cleaned_name)
        existing = self._types.get(base)
        if existing is not None and existing.is_enum:
            self._by_inline_enum[cleaned_name] = base
            return existing

        name = unique_name(base, set(self._types))
        info = TypeInfo(name=name, key=None, inline_enum=cleaned_name, is_enum=True)
        self._types[name] = info
        self._by_inline_enum[cleaned_name] = name
        return info

    def has_type(self, name: str) -> bool:
        return name in self._types

    def get_type(self, name: str) -> TypeInfo | None:
        return self._types.get(name)

    def __iter__(self) -> Iterator[TypeInfo]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
