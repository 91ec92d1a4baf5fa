"""Resolution of ``$ref`` strings against a SpecIndex.

Three reference shapes are understood::

    #/definitions/Name                                  local to the current file
    ./other.json#/definitions/Name                      same directory
    ../../common/v1/types.json#/definitions/Name        anywhere in the corpus

Relative references are first tried as a literal path from the current file.
If that file is not indexed, the basename is looked up across the whole
corpus, because the same file name may legitimately live under several
specification sub-trees.
"""

import posixpath
import re
from dataclasses import dataclass

from azsdkgen.codegen.schema import SchemaNode
from azsdkgen.codegen.spec_index import DefinitionKey, SpecIndex, posix_basename
from azsdkgen.codegen.versions import select_latest
from azsdkgen.exceptions import MalformedReferenceError, ReferenceNotFoundError

__all__ = ['ReferenceResolver', 'ResolvedReference']

_DEFINITION_REF = re.compile(r'^(?P<file>[^#]*)#/definitions/(?P<name>[^/]+)$')


@dataclass(frozen=True)
class ResolvedReference:
    """A resolved definition plus the file its own ``$ref`` strings resolve against.

    Attributes:
        key: The definition's key in the index.
        schema: The parsed definition.
    """

    key: DefinitionKey
    schema: SchemaNode

    @property
    def filename_context(self) -> str:
        return self.key.source_file


class ReferenceResolver:
    """Resolves ``$ref`` strings to definitions in a SpecIndex.

    Results are cached per ``(ref, current_file)`` for the lifetime of the
    resolver, which is one generation run.

    Example:
        >>> resolver = ReferenceResolver(index)
        >>> resolved = resolver.resolve('./common.json#/definitions/Resource', 'svc/api.json')
        >>> resolved.key.source_file
        'svc/common.json'
    """

    def __init__(self, index: SpecIndex):
        self.index = index
        self._cache: dict[tuple[str, str], ResolvedReference] = {}

    def resolve(self, ref: str, current_file: str) -> ResolvedReference:
        """Resolve ``ref`` as seen from ``current_file``.

        Args:
            ref: The ``$ref`` string.
            current_file: Relative path of the file containing the reference.

        Returns:
            The resolved definition.

        Raises:
            MalformedReferenceError: If ``ref`` has an unsupported shape.
            ReferenceNotFoundError: If the target definition does not exist.
        """
        cache_key = (ref, current_file)
        if cache_key in self._cache:
            return self._cache[cache_key]

        key = self._resolve_ref_string(ref, current_file)
        resolved = ResolvedReference(key=key, schema=self.index.definitions[key])
        self._cache[cache_key] = resolved
        return resolved

    def resolve_key(self, ref: str, current_file: str) -> DefinitionKey:
        return self.resolve(ref, current_file).key

    def _resolve_ref_string(self, ref: str, current_file: str) -> DefinitionKey:
        match = _DEFINITION_REF.match(ref)
        if not match:
            if '://' in ref:
                raise MalformedReferenceError(ref, 'Unsupported reference format')
            if '.json#' in ref:
                raise MalformedReferenceError(
                    ref,
                    'Invalid external reference format, expected '
                    "'<file>.json#/definitions/<Name>'",
                )
            raise MalformedReferenceError(ref)

        file_part = match.group('file')
        name = _unescape_pointer(match.group('name'))

        if not file_part:
            return self._lookup(ref, current_file, name)

        if '://' in file_part or not file_part.endswith('.json'):
            raise MalformedReferenceError(ref, 'Unsupported reference format')

        literal = posixpath.normpath(
            posixpath.join(posixpath.dirname(current_file), file_part)
        )
        if self.index.has_file(literal):
            return self._lookup(ref, literal, name)

        return self._lookup_by_basename(ref, posix_basename(file_part), name)

    def _lookup(self, ref: str, source_file: str, name: str) -> DefinitionKey:
        key = self.index.get_key(source_file, name)
        if key is None:
            available = (
                list(self.index.definitions_in(source_file))
                if self.index.has_file(source_file)
                else None
            )
            raise ReferenceNotFoundError(ref, name, source_file, available)
        return key

    def _lookup_by_basename(self, ref: str, basename: str, name: str) -> DefinitionKey:
        files = self.index.files_with_basename(basename)
        if not files:
            raise ReferenceNotFoundError(ref, name, basename, None)

        defining = [
            source_file for source_file in files if self.index.get_key(source_file, name)
        ]
        if not defining:
            target = select_latest(files, lambda source_file: source_file)
            return self._lookup(ref, target, name)

        target = select_latest(defining, lambda source_file: source_file)
        return self._lookup(ref, target, name)


def _unescape_pointer(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')
