"""Flattening of ``allOf`` inheritance chains into ordered field lists."""

from dataclasses import dataclass

from azsdkgen.codegen.schema import SchemaNode
from azsdkgen.codegen.schema_resolver import ReferenceResolver
from azsdkgen.codegen.utils import field_name

__all__ = ['InheritanceMerger', 'MergedProperty', 'is_ignored_property']


@dataclass(frozen=True)
class MergedProperty:
    """A property contributed to a record, with the file it was declared in.

    Attributes:
        field_name: The safe attribute name.
        wire_name: The JSON property name.
        schema: The property schema.
        file_context: File the property's own ``$ref`` strings resolve against.
        required: Whether the declaring schema lists the property as required.
    """

    field_name: str
    wire_name: str
    schema: SchemaNode
    file_context: str
    required: bool = False


def is_ignored_property(wire_name: str) -> bool:
    """``etag`` and ``x-ms-*`` properties are service plumbing and never become fields."""
    return wire_name == 'etag' or wire_name.startswith('x-ms-')


class _FieldCollector:
    def __init__(self):
        self.properties: list[MergedProperty] = []
        self._names: set[str] = set()

    def add_properties(self, schema: SchemaNode, file_context: str) -> None:
        required = set(schema.required)
        for wire_name, property_schema in schema.properties.items():
            if is_ignored_property(wire_name):
                continue
            name = field_name(wire_name)
            # first occurrence wins, so inherited fields shadow direct ones
            if name in self._names:
                continue
            self._names.add(name)
            self.properties.append(
                MergedProperty(
                    field_name=name,
                    wire_name=wire_name,
                    schema=property_schema,
                    file_context=file_context,
                    required=wire_name in required,
                )
            )


class InheritanceMerger:
    """Expands ``allOf`` chains into a flat, ordered, deduplicated field list.

    Branches are merged depth first: a referenced branch's own ``allOf`` is
    expanded (in the branch's file) before its direct properties, and the
    schema's own properties come last. Each call keeps a set of visited
    ``$ref`` strings, so self- and mutually-referential chains stop at the
    first repeat.

    Example:
        >>> merger = InheritanceMerger(resolver)
        >>> [p.wire_name for p in merger.merge_fields(schema, 'profile.json')]
        ['id', 'createdAt', 'updatedAt', 'avatarUrl']
    """

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def merge_fields(self, schema: SchemaNode, current_file: str) -> list[MergedProperty]:
        """Return every field of ``schema``, inherited fields first.

        Raises:
            ReferenceNotFoundError: If an ``allOf`` reference does not resolve.
            MalformedReferenceError: If an ``allOf`` reference is malformed.
        """
        collector = _FieldCollector()
        self._merge_all_of(schema, current_file, set(), collector)
        collector.add_properties(schema, current_file)
        return collector.properties

    def _merge_all_of(
        self,
        schema: SchemaNode,
        current_file: str,
        visited: set[str],
        collector: _FieldCollector,
    ) -> None:
        for entry in schema.all_of:
            if entry.ref is None:
                self._merge_all_of(entry, current_file, visited, collector)
                collector.add_properties(entry, current_file)
                continue

            if entry.ref in visited:
                continue
            visited.add(entry.ref)

            resolved = self.resolver.resolve(entry.ref, current_file)
            self._merge_all_of(
                resolved.schema, resolved.filename_context, visited, collector
            )
            collector.add_properties(resolved.schema, resolved.filename_context)
