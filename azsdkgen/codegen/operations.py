"""Compilation of REST operations into client method descriptions.

This module provides the OperationCompiler which turns an indexed Operation
into a CompiledOperation: a method name, an ordered list of parameters and
a resolved return type. Parameter ``$ref`` strings may point into entirely
different files (shared ``common-types`` definitions); those files are read
through an ExternalFileCache scoped to one generation run.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from azsdkgen.codegen.schema import SchemaNode
from azsdkgen.codegen.spec_index import Operation, SpecIndex
from azsdkgen.codegen.types import ANY, STRING, TypeGenerator, TypeRef, is_enum_definition
from azsdkgen.codegen.utils import method_name, parameter_name, unique_name
from azsdkgen.codegen.versions import ApiVersion, latest_by_embedded_date
from azsdkgen.exceptions import (
    ExternalResourceUnavailableError,
    OperationGenerationError,
    UnsupportedFeatureError,
)

__all__ = [
    'CompiledOperation',
    'ExternalFileCache',
    'OperationCompiler',
    'ParameterDescriptor',
]

logger = logging.getLogger(__name__)

_PATH_TEMPLATE = re.compile(r'\{([^}]+)\}')
_DEFINITION_NAME = re.compile(r'#/definitions/(?P<name>[^/]+)$')

DEFAULT_OPERATION_DESCRIPTION = 'Azure operation'


@dataclass(frozen=True)
class ParameterDescriptor:
    """One parameter of a compiled client method.

    Attributes:
        wire_name: The name sent over the wire.
        safe_name: A valid, per-method unique identifier.
        location: 'path' or 'query'.
        required: Path parameters are always required.
        description: The parameter description, or 'Parameter <wire_name>'.
        type: The scalar (or list of scalar) type of the parameter.
    """

    wire_name: str
    safe_name: str
    location: str
    required: bool
    description: str
    type: TypeRef = STRING


@dataclass
class CompiledOperation:
    """A GET operation ready to be rendered as a client method.

    Attributes:
        operation_id: The declared operationId.
        method_name: The client method name, e.g. 'getUsers'.
        http_method: Always 'GET' for compiled operations.
        path: The URL template.
        parameters: Path parameters in template order, then query parameters.
        return_type: Type of the 200 response body.
        description: Operation description, summary, or a default.
        api_version: The API version folder the operation came from.
        source_file: The file the operation was declared in.
    """

    operation_id: str
    method_name: str
    http_method: str
    path: str
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    return_type: TypeRef = ANY
    description: str = DEFAULT_OPERATION_DESCRIPTION
    api_version: str | None = None
    source_file: str = ''

    @property
    def path_parameters(self) -> list[ParameterDescriptor]:
        return [p for p in self.parameters if p.location == 'path']

    @property
    def query_parameters(self) -> list[ParameterDescriptor]:
        return [p for p in self.parameters if p.location == 'query']


class ExternalFileCache:
    """Lazily loaded JSON documents keyed by normalized absolute path.

    Failed loads are cached as None so each missing file is reported once.
    Entries are never invalidated; create a new cache for every run.
    """

    def __init__(self):
        self._documents: dict[str, dict[str, Any] | None] = {}

    def load(self, path: str | Path) -> dict[str, Any] | None:
        key = os.path.normpath(os.path.abspath(path))
        if key in self._documents:
            logger.debug(f'External file cache hit: {key}')
            return self._documents[key]

        document = None
        try:
            with open(key, encoding='utf-8') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                document = loaded
            else:
                logger.warning(f'External file {key} is not a JSON object')
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f'Could not load external file {key}: {e}')

        self._documents[key] = document
        return document

    def clear(self) -> None:
        self._documents.clear()

    @property
    def size(self) -> int:
        return len(self._documents)

    def __contains__(self, path: str | Path) -> bool:
        return os.path.normpath(os.path.abspath(path)) in self._documents


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Follow a JSON pointer such as '/parameters/SubscriptionIdParameter'.

    Raises:
        KeyError: If any segment does not exist.
    """
    current = document
    for token in pointer.split('/')[1:] if pointer else []:
        token = token.replace('~1', '/').replace('~0', '~')
        if isinstance(current, dict) and token in current:
            current = current[token]
        elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
            current = current[int(token)]
        else:
            raise KeyError(pointer)
    return current


class OperationCompiler:
    """Compiles indexed operations into CompiledOperation descriptions.

    Only GET operations are compiled; other methods stay in the index but
    raise UnsupportedFeatureError here.

    Example:
        >>> compiler = OperationCompiler(index, TypeGenerator(index))
        >>> compiled = compiler.compile(index.find_operation_spec('Users_Get'))
        >>> compiled.method_name, [p.safe_name for p in compiled.parameters]
        ('getUsers', ['userId', 'expand'])
    """

    def __init__(
        self,
        index: SpecIndex,
        types: TypeGenerator,
        file_cache: ExternalFileCache | None = None,
    ):
        self.index = index
        self.types = types
        self.file_cache = file_cache or ExternalFileCache()
        self.warnings: list[ExternalResourceUnavailableError] = []

    def compile(self, operation: Operation) -> CompiledOperation:
        """Compile one operation.

        Raises:
            UnsupportedFeatureError: If the operation is not a GET.
            ReferenceNotFoundError: If the response schema reference is broken.
            MalformedReferenceError: If the response schema reference is malformed.
            OperationGenerationError: If the operation is otherwise unusable.
        """
        if operation.http_method != 'GET':
            raise UnsupportedFeatureError(
                f'{operation.http_method} operation {operation.operation_id}',
                'Only GET operations are compiled into client methods',
            )

        try:
            parameters = self.compile_parameters(operation)
            return_type = self.resolve_return_type(operation)
        except (TypeError, ValueError) as e:
            raise OperationGenerationError(
                operation.operation_id, operation.http_method, operation.path, cause=e
            )

        version = ApiVersion.from_path(operation.source_file)
        return CompiledOperation(
            operation_id=operation.operation_id,
            method_name=method_name(operation.operation_id),
            http_method=operation.http_method,
            path=operation.path,
            parameters=parameters,
            return_type=return_type,
            description=(
                operation.description
                or operation.summary
                or DEFAULT_OPERATION_DESCRIPTION
            ),
            api_version=version.version if version.known else None,
            source_file=operation.source_file,
        )

    def compile_parameters(self, operation: Operation) -> list[ParameterDescriptor]:
        """Resolve, filter, order and name the parameters of an operation."""
        path_params: list[dict[str, Any]] = []
        query_params: list[dict[str, Any]] = []

        for raw in operation.raw_parameters:
            try:
                parameter = self.resolve_parameter(raw, operation)
            except ExternalResourceUnavailableError as e:
                logger.warning(
                    f'Dropping parameter of {operation.operation_id}: {e}'
                )
                self.warnings.append(e)
                continue

            name = parameter.get('name')
            location = parameter.get('in')
            if not isinstance(name, str) or name.lower() == 'api-version':
                continue
            if location == 'path':
                path_params.append(parameter)
            elif location == 'query':
                query_params.append(parameter)

        used: set[str] = set()
        descriptors = []
        for parameter in self._order_by_template(path_params, operation.path) + query_params:
            wire_name = parameter['name']
            safe_name = unique_name(parameter_name(wire_name), used)
            used.add(safe_name)
            is_path = parameter['in'] == 'path'
            descriptors.append(
                ParameterDescriptor(
                    wire_name=wire_name,
                    safe_name=safe_name,
                    location=parameter['in'],
                    required=True if is_path else bool(parameter.get('required', False)),
                    description=parameter.get('description') or f'Parameter {wire_name}',
                    type=self._parameter_type(parameter),
                )
            )
        return descriptors

    def resolve_parameter(self, raw: dict[str, Any], operation: Operation) -> dict[str, Any]:
        """Follow ``$ref`` stubs until an inline parameter object is reached.

        Local pointers resolve against the operation's document; file
        references resolve against the directory of the file containing the
        reference, starting from the operation's own source file.

        Raises:
            ExternalResourceUnavailableError: If a referenced file or pointer
                cannot be loaded.
        """
        parameter: Any = raw
        document = operation.document_root
        base = Path(operation.source_path)
        seen: set[tuple[str, str]] = set()

        while isinstance(parameter, dict) and isinstance(parameter.get('$ref'), str):
            ref = parameter['$ref']
            if (str(base), ref) in seen:
                raise ExternalResourceUnavailableError(ref, 'circular parameter reference')
            seen.add((str(base), ref))

            file_part, _, pointer = ref.partition('#')
            if file_part:
                target = os.path.normpath(os.path.join(base.parent, file_part))
                loaded = self.file_cache.load(target)
                if loaded is None:
                    raise ExternalResourceUnavailableError(target, 'missing or unreadable')
                document, base = loaded, Path(target)

            try:
                parameter = resolve_pointer(document, pointer)
            except KeyError:
                raise ExternalResourceUnavailableError(
                    f'{base}#{pointer}', 'pointer does not exist'
                )

        if not isinstance(parameter, dict):
            raise ExternalResourceUnavailableError(
                str(raw.get('$ref', raw)), 'not a parameter object'
            )
        return parameter

    def resolve_return_type(self, operation: Operation) -> TypeRef:
        """Type of the 200 response; ``any`` when there is none."""
        schema = operation.responses.get('200')
        if schema is None:
            return ANY

        ref = schema.get('$ref')
        if isinstance(ref, str):
            match = _DEFINITION_NAME.search(ref)
            if match and match.group('name') in self.index.duplicate_names:
                return self._latest_duplicate(match.group('name'))
            return self.types.mapper.map_reference(ref, operation.source_file)

        node = SchemaNode.model_validate(schema)
        self.types.enums.extract_from_node(node)
        return self.types.mapper.map_type(node, operation.source_file)

    def _latest_duplicate(self, bare_name: str) -> TypeRef:
        candidates = sorted(self.index.keys_named(bare_name))
        key = latest_by_embedded_date(candidates, lambda candidate: candidate.source_file)
        info = self.types.registry.name_for_definition(
            key, is_enum=is_enum_definition(self.index.definitions[key])
        )
        return TypeRef.named(info.name, key=key)

    def _order_by_template(
        self, parameters: list[dict[str, Any]], path: str
    ) -> list[dict[str, Any]]:
        positions: dict[str, int] = {}
        for i, name in enumerate(_PATH_TEMPLATE.findall(path)):
            positions.setdefault(name, i)
        in_template = [p for p in parameters if p['name'] in positions]
        missing = [p for p in parameters if p['name'] not in positions]
        in_template.sort(key=lambda p: positions[p['name']])
        return in_template + missing

    def _parameter_type(self, parameter: dict[str, Any]) -> TypeRef:
        declared = parameter.get('type')
        if declared == 'array':
            items = parameter.get('items')
            item_type = self._scalar(items) if isinstance(items, dict) else None
            return TypeRef.list_of(item_type or STRING)
        return self._scalar(parameter) or STRING

    def _scalar(self, declaration: dict[str, Any]) -> TypeRef | None:
        declared = declaration.get('type')
        declared_format = declaration.get('format')
        node = SchemaNode(
            type=declared if isinstance(declared, str) else None,
            format=declared_format if isinstance(declared_format, str) else None,
        )
        return self.types.mapper.map_primitive(node)
