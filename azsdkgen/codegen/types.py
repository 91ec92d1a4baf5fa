"""Type mapping, inline enum extraction and the generated type model.

TypeMapper turns schema nodes into :class:`TypeRef` values, EnumExtractor
harvests inline ``x-ms-enum`` enumerations, and TypeGenerator combines them
with the InheritanceMerger into :class:`GeneratedType` records that the
emitter renders.
"""

import ast
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace

from azsdkgen.codegen.ast_utils import _name, _subscript
from azsdkgen.codegen.inheritance import InheritanceMerger
from azsdkgen.codegen.schema import SchemaKind, SchemaNode
from azsdkgen.codegen.schema_resolver import ReferenceResolver
from azsdkgen.codegen.spec_index import DefinitionKey, SpecIndex
from azsdkgen.codegen.type_registry import TypeRegistry
from azsdkgen.codegen.utils import (
    RESERVED_WORDS,
    clean_enum_name,
    enum_constant_name,
    lower_first,
    to_snake_case,
    unique_name,
)
from azsdkgen.exceptions import TypeGenerationError

__all__ = [
    'ANY',
    'BOOLEAN',
    'DOUBLE',
    'EnumConstant',
    'EnumExtractor',
    'GeneratedField',
    'GeneratedType',
    'INT32',
    'INT64',
    'InlineEnumEntry',
    'STRING',
    'SENTINEL',
    'TypeGenerator',
    'TypeMapper',
    'TypeRef',
]

logger = logging.getLogger(__name__)

SENTINEL = 'UNKNOWN_TO_SDK'

_PYTHON_PRIMITIVES = {
    'string': 'str',
    'int32': 'int',
    'int64': 'int',
    'double': 'float',
    'boolean': 'bool',
    'any': 'Any',
}


@dataclass(frozen=True)
class TypeRef:
    """A target-independent type expression.

    ``kind`` is one of 'string', 'int32', 'int64', 'double', 'boolean',
    'any', 'list', 'map' or 'named'. Lists and maps carry their element type
    in ``item``; named types carry the output ``name`` and, for definitions,
    the ``key`` they were generated from.
    """

    kind: str
    name: str | None = None
    item: 'TypeRef | None' = None
    key: DefinitionKey | None = None
    inline_enum: str | None = None

    @classmethod
    def list_of(cls, item: 'TypeRef') -> 'TypeRef':
        return cls('list', item=item)

    @classmethod
    def map_of(cls, item: 'TypeRef') -> 'TypeRef':
        return cls('map', item=item)

    @classmethod
    def named(
        cls, name: str, key: DefinitionKey | None = None, inline_enum: str | None = None
    ) -> 'TypeRef':
        return cls('named', name=name, key=key, inline_enum=inline_enum)

    @property
    def is_named(self) -> bool:
        return self.kind == 'named'

    def named_types(self) -> Iterator['TypeRef']:
        """Yield every named type inside this expression."""
        if self.is_named:
            yield self
        elif self.item is not None:
            yield from self.item.named_types()

    def uses_any(self) -> bool:
        if self.kind == 'any':
            return True
        return self.item is not None and self.item.uses_any()

    def to_ast(self) -> ast.expr:
        """Python annotation for this type."""
        if self.is_named:
            return _name(self.name)
        if self.kind == 'list':
            return _subscript('list', self.item.to_ast())
        if self.kind == 'map':
            return _subscript(
                'dict', ast.Tuple(elts=[_name('str'), self.item.to_ast()], ctx=ast.Load())
            )
        return _name(_PYTHON_PRIMITIVES[self.kind])

    def annotation(self) -> str:
        return ast.unparse(self.to_ast())

    def __str__(self) -> str:
        if self.is_named:
            return self.name
        if self.kind == 'list':
            return f'list<{self.item}>'
        if self.kind == 'map':
            return f'map<string, {self.item}>'
        return self.kind


STRING = TypeRef('string')
INT32 = TypeRef('int32')
INT64 = TypeRef('int64')
DOUBLE = TypeRef('double')
BOOLEAN = TypeRef('boolean')
ANY = TypeRef('any')


@dataclass(frozen=True)
class GeneratedField:
    """One field of a generated record.

    Attributes:
        name: The safe attribute name.
        type: The field's type.
        wire_name: The JSON property name.
        required: Whether the schema marks the property as required.
        description: The property description, if any.
    """

    name: str
    type: TypeRef
    wire_name: str
    required: bool = False
    description: str | None = None

    @property
    def has_alias(self) -> bool:
        return self.name != self.wire_name


@dataclass(frozen=True)
class EnumConstant:
    name: str
    wire_value: str | None


@dataclass
class GeneratedType:
    """A record, enumeration or root type ready to be emitted.

    Attributes:
        output_name: The collision-free type name.
        is_enum: Whether this is an enumeration.
        fields: Record fields, inherited first.
        enum_constants: Enum members; the last one is always the sentinel.
        root: The wrapped type of a non-record, non-enum definition.
        source_file: The file the type was generated from.
        source_line: The line of the definition (or of the record holding
            the inline enum), or -1.
        description: The schema description, if any.
        origin: The definition behind the type; None for inline enums.
        inline_enum: The cleaned x-ms-enum name for inline enums.
    """

    output_name: str
    is_enum: bool
    fields: list[GeneratedField] = field(default_factory=list)
    enum_constants: list[EnumConstant] = field(default_factory=list)
    root: TypeRef | None = None
    source_file: str = ''
    source_line: int = -1
    description: str | None = None
    origin: DefinitionKey | None = None
    inline_enum: str | None = None

    @property
    def is_root(self) -> bool:
        return self.root is not None

    @property
    def module_name(self) -> str:
        return to_snake_case(self.output_name)

    @property
    def traceability(self) -> str:
        location = f'{self.source_file}:{self.source_line}'
        if self.inline_enum is not None:
            return f'Generated from inline enum {self.inline_enum} in {location}'
        return f'Generated from {location}'

    def referenced_types(self) -> list[TypeRef]:
        refs: list[TypeRef] = []
        for generated_field in self.fields:
            refs.extend(generated_field.type.named_types())
        if self.root is not None:
            refs.extend(self.root.named_types())
        return refs


def enum_constants(wire_values: Iterable[str]) -> list[EnumConstant]:
    """Build enum members for ``wire_values`` plus the trailing sentinel."""
    used = {SENTINEL}
    constants = []
    for value in wire_values:
        name = enum_constant_name(value)
        # _sunder_ names are reserved by enum
        if len(name) > 2 and name.startswith('_') and name.endswith('_'):
            name += 'VALUE'
        name = unique_name(name, used)
        used.add(name)
        constants.append(EnumConstant(name=name, wire_value=value))
    constants.append(EnumConstant(name=SENTINEL, wire_value=None))
    return constants


def is_enum_definition(schema: SchemaNode) -> bool:
    return schema.ref is None and schema.is_string_enum and not schema.is_record


@dataclass
class InlineEnumEntry:
    """An enumeration declared on a property rather than as a definition.

    Attributes:
        cleaned_name: The trimmed x-ms-enum name; the collection key.
        wire_values: The declared values.
        source_description: The description of the declaring property.
        origin: The definition the enum was found in, if known.
    """

    cleaned_name: str
    wire_values: list[str]
    source_description: str | None = None
    origin: DefinitionKey | None = None


class EnumExtractor:
    """Collects inline enums once per run, keyed by cleaned name.

    The first declaration of a name wins; later declarations with the same
    name reuse it.
    """

    def __init__(self):
        self.entries: dict[str, InlineEnumEntry] = {}

    def extract_inline_enums(
        self, schema: SchemaNode, origin: DefinitionKey | None = None
    ) -> list[InlineEnumEntry]:
        """Harvest inline enums below ``schema``.

        Walks properties, array items, ``additionalProperties`` schemas and
        nested object properties.

        Returns:
            The entries first seen during this call.
        """
        found: list[InlineEnumEntry] = []
        self._visit_children(schema, origin, found)
        return found

    def extract_from_node(
        self, node: SchemaNode, origin: DefinitionKey | None = None
    ) -> list[InlineEnumEntry]:
        """Like extract_inline_enums, but ``node`` itself may be an inline enum."""
        found: list[InlineEnumEntry] = []
        self._visit(node, origin, found)
        return found

    def _visit(
        self, node: SchemaNode, origin: DefinitionKey | None, found: list[InlineEnumEntry]
    ) -> None:
        if node.is_inline_enum:
            cleaned = clean_enum_name(node.enum_name)
            if cleaned and cleaned not in self.entries:
                entry = InlineEnumEntry(
                    cleaned_name=cleaned,
                    wire_values=node.wire_values(),
                    source_description=node.description,
                    origin=origin,
                )
                self.entries[cleaned] = entry
                found.append(entry)
        self._visit_children(node, origin, found)

    def _visit_children(
        self, node: SchemaNode, origin: DefinitionKey | None, found: list[InlineEnumEntry]
    ) -> None:
        for child in node.properties.values():
            self._visit(child, origin, found)
        if node.items is not None:
            self._visit(node.items, origin, found)
        if isinstance(node.additional_properties, SchemaNode):
            self._visit(node.additional_properties, origin, found)


class TypeMapper:
    """Maps schema nodes to type expressions.

    ``$ref`` nodes map to the registered name of the resolved definition,
    inline enums to their enum type, and everything without a dedicated
    mapping to ``any``.
    """

    def __init__(self, resolver: ReferenceResolver, registry: TypeRegistry):
        self.resolver = resolver
        self.registry = registry

    def map_type(self, node: SchemaNode, current_file: str) -> TypeRef:
        """Map ``node`` as seen from ``current_file``.

        Raises:
            ReferenceNotFoundError: If a ``$ref`` does not resolve.
            MalformedReferenceError: If a ``$ref`` is malformed.
        """
        kind = node.kind
        if kind is SchemaKind.REFERENCE:
            return self.map_reference(node.ref, current_file)

        if kind is SchemaKind.STRING and node.is_inline_enum:
            info = self.registry.name_for_inline_enum(clean_enum_name(node.enum_name))
            return TypeRef.named(info.name, key=info.key, inline_enum=info.inline_enum)

        primitive = self.map_primitive(node)
        if primitive is not None:
            return primitive

        if kind is SchemaKind.ARRAY:
            if node.items is None:
                return TypeRef.list_of(ANY)
            return TypeRef.list_of(self.map_type(node.items, current_file))

        if kind is SchemaKind.OBJECT:
            additional = node.additional_properties
            if additional is True:
                return TypeRef.map_of(ANY)
            if isinstance(additional, SchemaNode):
                return TypeRef.map_of(self.map_type(additional, current_file))

        return ANY

    def map_reference(self, ref: str, current_file: str) -> TypeRef:
        resolved = self.resolver.resolve(ref, current_file)
        info = self.registry.name_for_definition(
            resolved.key, is_enum=is_enum_definition(resolved.schema)
        )
        return TypeRef.named(info.name, key=resolved.key)

    def map_primitive(self, node: SchemaNode) -> TypeRef | None:
        """Map scalar types; None for anything that is not a scalar."""
        kind = node.kind
        if kind is SchemaKind.STRING:
            return STRING
        if kind is SchemaKind.INTEGER:
            return INT64 if node.format == 'int64' else INT32
        if kind is SchemaKind.NUMBER:
            return DOUBLE
        if kind is SchemaKind.BOOLEAN:
            return BOOLEAN
        return None


class TypeGenerator:
    """Builds GeneratedType records for one generation run.

    All per-run state (reference cache, name registry, inline enum
    collection) lives on this object; create a new one for every run.

    Example:
        >>> typegen = TypeGenerator(index)
        >>> user = typegen.generate_definition(index.get_key('user.json', 'User'))
        >>> [f.name for f in user.fields]
        ['id', 'email', 'profile']
    """

    def __init__(self, index: SpecIndex):
        self.index = index
        self.resolver = ReferenceResolver(index)
        self.registry = TypeRegistry(index.duplicate_names)
        self.mapper = TypeMapper(self.resolver, self.registry)
        self.merger = InheritanceMerger(self.resolver)
        self.enums = EnumExtractor()
        self._generated: dict[DefinitionKey, GeneratedType] = {}

    def generate_definition(self, key: DefinitionKey) -> GeneratedType:
        """Generate (once) the type for one definition.

        Raises:
            TypeGenerationError: If ``key`` is not in the index.
            ReferenceNotFoundError: If any reference below it does not resolve.
            MalformedReferenceError: If any reference below it is malformed.
        """
        if key in self._generated:
            return self._generated[key]

        schema = self.index.definitions.get(key)
        if schema is None:
            raise TypeGenerationError(key.name, key.pointer, cause=KeyError(key.name))

        is_enum = is_enum_definition(schema)
        info = self.registry.name_for_definition(key, is_enum=is_enum)
        generated = GeneratedType(
            output_name=info.name,
            is_enum=is_enum,
            source_file=key.source_file,
            source_line=key.source_line,
            description=schema.description,
            origin=key,
        )
        # registered before expanding fields so self references terminate
        self._generated[key] = generated

        if is_enum:
            generated.enum_constants = enum_constants(schema.wire_values())
        elif schema.is_record:
            for merged in self.merger.merge_fields(schema, key.source_file):
                self.enums.extract_from_node(merged.schema, origin=key)
                generated.fields.append(
                    GeneratedField(
                        name=merged.field_name,
                        type=self.mapper.map_type(merged.schema, merged.file_context),
                        wire_name=merged.wire_name,
                        required=merged.required,
                        description=merged.schema.description,
                    )
                )
        else:
            self.enums.extract_from_node(schema, origin=key)
            generated.root = self.mapper.map_type(schema, key.source_file)

        logger.debug(f'Generated {generated.output_name} from {key.pointer}')
        return generated

    def generate_closure(self, roots: Iterable[TypeRef]) -> list[GeneratedType]:
        """Generate every type reachable from ``roots``, plus harvested inline enums."""
        queue = deque(named for root in roots for named in root.named_types())
        while queue:
            ref = queue.popleft()
            if ref.key is None or ref.key in self._generated:
                continue
            queue.extend(self.generate_definition(ref.key).referenced_types())
        return self.generated_types()

    def generate_all(self) -> list[GeneratedType]:
        """Generate a type for every indexed definition."""
        for key in sorted(self.index.definitions):
            self.generate_definition(key)
        return self.generated_types()

    def inline_enum_types(self) -> list[GeneratedType]:
        """Types for the inline enums that do not alias an existing enum."""
        types = []
        for cleaned, entry in self.enums.entries.items():
            info = self.registry.name_for_inline_enum(cleaned)
            if info.inline_enum != cleaned:
                continue
            origin = entry.origin
            types.append(
                GeneratedType(
                    output_name=info.name,
                    is_enum=True,
                    enum_constants=enum_constants(entry.wire_values),
                    source_file=origin.source_file if origin else '',
                    source_line=origin.source_line if origin else -1,
                    description=entry.source_description,
                    inline_enum=cleaned,
                )
            )
        return types

    def generated_types(self) -> list[GeneratedType]:
        """All generated types so far, sorted by output name.

        Record fields named like a generated type are renamed (the wire
        name stays as the alias) so the class body does not rebind a name
        its annotations refer to.
        """
        types = list(self._generated.values()) + self.inline_enum_types()
        type_names = {generated.output_name for generated in types}
        for generated in types:
            if any(f.name in type_names for f in generated.fields):
                generated.fields = _rename_shadowing_fields(generated.fields, type_names)
        return sorted(types, key=lambda generated: generated.output_name)


def _rename_shadowing_fields(
    fields: list[GeneratedField], type_names: set[str]
) -> list[GeneratedField]:
    used = {f.name for f in fields} | type_names
    renamed = []
    for generated_field in fields:
        if generated_field.name in type_names:
            name = lower_first(generated_field.name)
            name = RESERVED_WORDS.get(name, name)
            if name in used:
                name = unique_name(f'{name}Field', used)
            used.add(name)
            generated_field = replace(generated_field, name=name)
        renamed.append(generated_field)
    return renamed
