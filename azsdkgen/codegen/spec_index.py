"""Indexing of a Swagger 2.0 specification corpus.

This module provides the SpecIndex class which walks a directory tree of
specification files and builds flat lookup tables for every definition and
operation it finds. Loading happens in two phases:

1. Every ``.json`` file under the root is parsed; its ``paths`` become
   operations and its ``definitions`` become keyed schemas.
2. Files referenced through relative ``$ref`` strings that were not part of
   the walk (typically shared ``common-types`` living outside the root) are
   loaded for their definitions only.

Files that cannot be read or parsed are logged and skipped.
"""

import json
import logging
import os
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatch
from functools import cached_property
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from azsdkgen.codegen.schema import SchemaNode
from azsdkgen.codegen.versions import select_latest
from azsdkgen.config import DEFAULT_EXCLUDES
from azsdkgen.exceptions import SpecLoadError, SpecNotFoundError

__all__ = [
    'DefinitionKey',
    'Operation',
    'SpecDocument',
    'SpecIndex',
    'iter_refs',
]

logger = logging.getLogger(__name__)

HTTP_METHODS = ('get', 'put', 'post', 'patch', 'delete', 'head', 'options')

_DEFINITIONS_KEY = re.compile(r'"definitions"\s*:')


@dataclass(frozen=True, order=True)
class DefinitionKey:
    """Identifies the origin of exactly one definition.

    Equality and hashing only consider ``(source_file, name)``; the position
    fields are carried for traceability comments.

    Attributes:
        source_file: POSIX path of the file, relative to the corpus root.
        name: The bare definition name.
        source_line: 1-based line of the definition, or -1 if unknown.
        source_offset: Character offset of the definition, or -1 if unknown.
    """

    source_file: str
    name: str
    source_line: int = field(default=-1, compare=False)
    source_offset: int = field(default=-1, compare=False)

    @property
    def basename(self) -> str:
        return posix_basename(self.source_file)

    @property
    def pointer(self) -> str:
        return f'{self.source_file}#/definitions/{self.name}'

    def __str__(self) -> str:
        return f'{self.source_file}:{self.source_line}'


@dataclass
class Operation:
    """One REST endpoint as declared in a specification file.

    Attributes:
        operation_id: The declared operationId.
        http_method: Upper-case HTTP method.
        path: The URL template, e.g. '/users/{userId}'.
        raw_parameters: Parameter objects or $ref stubs, path-item level first.
        responses: Raw response schemas keyed by status code.
        source_file: POSIX path of the file, relative to the corpus root.
        source_path: Absolute path of the file.
        document_root: The whole parsed document, for local '#/...' pointers.
        description: The operation description, if any.
        summary: The operation summary, if any.
    """

    operation_id: str
    http_method: str
    path: str
    raw_parameters: list[dict[str, Any]]
    responses: dict[str, dict[str, Any]]
    source_file: str
    source_path: Path
    document_root: dict[str, Any] = field(repr=False)
    description: str | None = None
    summary: str | None = None

    @property
    def response_schema_refs(self) -> dict[str, str]:
        """Status code to schema ``$ref`` for responses that have one."""
        return {
            code: schema['$ref']
            for code, schema in self.responses.items()
            if isinstance(schema.get('$ref'), str)
        }


@dataclass
class SpecDocument:
    """A parsed specification file."""

    relative_path: str
    path: Path
    content: str = field(repr=False)
    root: dict[str, Any] = field(repr=False)


def posix_basename(path: str) -> str:
    return path.rsplit('/', 1)[-1]


def iter_refs(node: Any) -> Iterator[str]:
    """Yield every ``$ref`` string found anywhere inside a JSON value."""
    if isinstance(node, dict):
        for key, value in node.items():
            if key == '$ref' and isinstance(value, str):
                yield value
            else:
                yield from iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from iter_refs(item)


def _merge_parameters(shared: list[Any], own: list[Any]) -> list[dict[str, Any]]:
    """Combine path-item and operation parameters; operation entries override."""

    def identity(parameter: dict[str, Any]) -> tuple:
        if '$ref' in parameter:
            return ('$ref', parameter['$ref'])
        return (parameter.get('name'), parameter.get('in'))

    own = [parameter for parameter in own if isinstance(parameter, dict)]
    overridden = {identity(parameter) for parameter in own}
    inherited = [
        parameter
        for parameter in shared
        if isinstance(parameter, dict) and identity(parameter) not in overridden
    ]
    return inherited + own


class SpecIndex:
    """Flat index of every definition and operation in a corpus.

    All lookups are plain dictionary accesses; references between schemas are
    kept as strings and resolved on demand, so cyclic schema graphs never
    become cyclic object graphs.

    Example:
        >>> index = SpecIndex.load('azure-rest-api-specs/specification')
        >>> operation = index.find_operation_spec('VirtualNetworks_Get')
        >>> key = index.get_key(operation.source_file, 'VirtualNetwork')
        >>> schema = index.definitions[key]
    """

    def __init__(
        self,
        root: str | Path | Sequence[str | Path],
        exclude: list[str] | None = None,
        follow_external_refs: bool = True,
    ):
        """Initialize an empty index.

        Args:
            root: The corpus root directory, or several roots indexed
                together. Relative paths are taken from the roots' common
                ancestor, so files from different roots never share a key.
            exclude: fnmatch patterns of files to skip, matched against the
                path relative to the walked root and the file name.
            follow_external_refs: Whether to load files referenced from
                outside the roots (phase 2).
        """
        roots = [root] if isinstance(root, (str, os.PathLike)) else list(root)
        if not roots:
            raise ValueError('SpecIndex needs at least one root')
        self.roots = list(dict.fromkeys(Path(os.path.abspath(r)) for r in roots))
        self.root = Path(os.path.commonpath(self.roots))
        self.exclude = DEFAULT_EXCLUDES if exclude is None else exclude
        self.follow_external_refs = follow_external_refs

        self.definitions: dict[DefinitionKey, SchemaNode] = {}
        self.documents: dict[str, SpecDocument] = {}
        self.load_errors: list[SpecLoadError] = []

        self._operations: dict[str, list[Operation]] = {}
        self._by_file: dict[str, dict[str, DefinitionKey]] = {}
        self._by_name: dict[str, list[DefinitionKey]] = {}
        self._by_basename: dict[str, list[str]] = {}

    @classmethod
    def load(
        cls,
        root: str | Path | Sequence[str | Path],
        exclude: list[str] | None = None,
        follow_external_refs: bool = True,
    ) -> 'SpecIndex':
        """Walk ``root`` (or every root, in order) and return a fully populated index.

        Raises:
            SpecLoadError: If a root is not a directory. Failures of
                individual files are collected in ``load_errors`` instead.
        """
        index = cls(root, exclude=exclude, follow_external_refs=follow_external_refs)
        index._load()
        return index

    def _load(self) -> None:
        for root in self.roots:
            if not root.is_dir():
                raise SpecLoadError(str(root), cause=NotADirectoryError('not a directory'))

        for root in self.roots:
            self._walk(root)

        if self.follow_external_refs:
            self._load_external_references()

        logger.info(
            f'Indexed {len(self.documents)} files from '
            f'{", ".join(str(root) for root in self.roots)}: '
            f'{len(self.definitions)} definitions, '
            f'{len(self._operations)} operation ids, '
            f'{len(self.load_errors)} failures'
        )

    def _walk(self, root: Path) -> None:
        paths = sorted(
            (path for path in root.rglob('*.json') if path.is_file()),
            key=lambda path: path.relative_to(root).as_posix(),
        )
        for path in paths:
            relative = path.relative_to(root).as_posix()
            if self._is_excluded(relative):
                logger.debug(f'Skipping excluded file {relative}')
                continue
            # nested roots reach the same file twice
            if self.relative_path(path) in self.documents:
                continue
            self._index_file(path, with_operations=True)

    def _is_excluded(self, relative: str) -> bool:
        name = posix_basename(relative)
        return any(
            fnmatch('/' + relative, pattern) or fnmatch(name, pattern)
            for pattern in self.exclude
        )

    def relative_path(self, path: str | Path) -> str:
        """Return ``path`` relative to the roots' common ancestor, POSIX style (may start with '../')."""
        return Path(os.path.relpath(os.path.abspath(path), self.root)).as_posix()

    def _read(self, path: Path) -> SpecDocument | None:
        relative = self.relative_path(path)
        try:
            content = path.read_text(encoding='utf-8')
            root = json.loads(content)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._record_failure(SpecLoadError(relative, cause=e))
            return None
        if not isinstance(root, dict):
            self._record_failure(
                SpecLoadError(relative, cause=ValueError('document is not an object'))
            )
            return None
        return SpecDocument(relative_path=relative, path=path, content=content, root=root)

    def _record_failure(self, error: SpecLoadError) -> None:
        logger.warning(f'{error}; skipping')
        self.load_errors.append(error)

    def _index_file(self, path: Path, with_operations: bool) -> SpecDocument | None:
        document = self._read(path)
        if document is None:
            return None
        self.documents[document.relative_path] = document
        self._by_basename.setdefault(posix_basename(document.relative_path), []).append(
            document.relative_path
        )
        self._by_file.setdefault(document.relative_path, {})
        self._index_definitions(document)
        if with_operations:
            self._index_operations(document)
        return document

    def _index_definitions(self, document: SpecDocument) -> None:
        definitions = document.root.get('definitions')
        if not isinstance(definitions, dict):
            return

        marker = _DEFINITIONS_KEY.search(document.content)
        start = marker.end() if marker else 0

        for name, raw in definitions.items():
            if not isinstance(raw, dict):
                self._record_failure(
                    SpecLoadError(
                        f'{document.relative_path}#/definitions/{name}',
                        cause=ValueError('definition is not an object'),
                    )
                )
                continue
            try:
                schema = SchemaNode.model_validate(raw)
            except ValidationError as e:
                self._record_failure(
                    SpecLoadError(f'{document.relative_path}#/definitions/{name}', cause=e)
                )
                continue

            line, offset = _locate(document.content, name, start)
            key = DefinitionKey(document.relative_path, name, line, offset)
            self.definitions[key] = schema
            self._by_file[document.relative_path][name] = key
            self._by_name.setdefault(name, []).append(key)

    def _index_operations(self, document: SpecDocument) -> None:
        paths = document.root.get('paths')
        if not isinstance(paths, dict):
            return

        for url, item in paths.items():
            if not isinstance(item, dict):
                continue
            shared = item.get('parameters')
            shared = shared if isinstance(shared, list) else []
            for method in HTTP_METHODS:
                spec = item.get(method)
                if not isinstance(spec, dict):
                    continue
                operation_id = spec.get('operationId')
                if not isinstance(operation_id, str) or not operation_id:
                    continue
                own = spec.get('parameters')
                responses = {}
                for code, response in (spec.get('responses') or {}).items():
                    if isinstance(response, dict) and isinstance(
                        response.get('schema'), dict
                    ):
                        responses[str(code)] = response['schema']
                operation = Operation(
                    operation_id=operation_id,
                    http_method=method.upper(),
                    path=url,
                    raw_parameters=_merge_parameters(
                        shared, own if isinstance(own, list) else []
                    ),
                    responses=responses,
                    source_file=document.relative_path,
                    source_path=document.path,
                    document_root=document.root,
                    description=spec.get('description'),
                    summary=spec.get('summary'),
                )
                self._operations.setdefault(operation_id, []).append(operation)

    def _load_external_references(self) -> None:
        processed = {str(document.path) for document in self.documents.values()}
        pending = list(self.documents.values())

        while pending:
            document = pending.pop(0)
            for target in sorted(self._external_files(document)):
                if target in processed:
                    continue
                processed.add(target)
                if not os.path.isfile(target):
                    logger.debug(
                        f'Referenced file {target} from {document.relative_path} does not exist'
                    )
                    continue
                logger.debug(f'Loading external definitions from {target}')
                loaded = self._index_file(Path(target), with_operations=False)
                if loaded is not None:
                    pending.append(loaded)

    def _external_files(self, document: SpecDocument) -> set[str]:
        files = set()
        directory = document.path.parent
        for ref in iter_refs(document.root):
            file_part = ref.split('#', 1)[0]
            if not file_part or '://' in file_part or not file_part.endswith('.json'):
                continue
            files.add(os.path.normpath(directory / file_part))
        return files

    @cached_property
    def duplicate_names(self) -> frozenset[str]:
        """Bare definition names that appear in more than one source file."""
        return frozenset(
            name
            for name, keys in self._by_name.items()
            if len({key.source_file for key in keys}) > 1
        )

    def get_key(self, source_file: str, name: str) -> DefinitionKey | None:
        return self._by_file.get(source_file, {}).get(name)

    def definitions_in(self, source_file: str) -> dict[str, DefinitionKey]:
        """Definitions declared in one file, keyed by bare name."""
        return dict(self._by_file.get(source_file, {}))

    def keys_named(self, name: str) -> list[DefinitionKey]:
        """Every definition with the given bare name, in load order."""
        return list(self._by_name.get(name, []))

    def files_with_basename(self, basename: str) -> list[str]:
        return list(self._by_basename.get(basename, []))

    def has_file(self, source_file: str) -> bool:
        return source_file in self._by_file

    def operation_candidates(self, operation_id: str) -> list[Operation]:
        return list(self._operations.get(operation_id, []))

    def find_operation_spec(self, operation_id: str) -> Operation:
        """Return the operation for ``operation_id``.

        When several files declare the same operationId the one under the
        newest API version wins (stable over preview, then latest date).

        Raises:
            SpecNotFoundError: If no indexed file declares the operation.
        """
        candidates = self._operations.get(operation_id)
        if not candidates:
            raise SpecNotFoundError(operation_id, ', '.join(str(root) for root in self.roots))
        return select_latest(candidates, lambda operation: operation.source_file)

    @property
    def operations(self) -> dict[str, Operation]:
        """The selected operation for every operationId, sorted by id."""
        return {
            operation_id: self.find_operation_spec(operation_id)
            for operation_id in sorted(self._operations)
        }


def _locate(content: str, name: str, start: int) -> tuple[int, int]:
    key = json.dumps(name)
    match = re.compile(re.escape(key) + r'\s*:').search(content, start)
    if not match:
        return -1, -1
    return content.count('\n', 0, match.start()) + 1, match.start()
