"""Code generation module for azsdkgen.

This module provides the main Codegen class that runs one generation pass:
index the corpus, compile the requested GET operations, generate the types
they reach and hand everything to an emitter.
"""

import logging
from dataclasses import dataclass, field

from upath import UPath

from azsdkgen.codegen.emitter import CodeEmitter, FileEmitter
from azsdkgen.codegen.operations import CompiledOperation, OperationCompiler
from azsdkgen.codegen.spec_index import SpecIndex
from azsdkgen.codegen.types import GeneratedType, TypeGenerator
from azsdkgen.codegen.utils import unique_name
from azsdkgen.config import GeneratorConfig
from azsdkgen.exceptions import (
    AzSdkGenError,
    SpecNotFoundError,
    UnsupportedFeatureError,
)

__all__ = ['Codegen', 'GenerationResult']

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Everything one generation run produced.

    Attributes:
        types: Generated types, sorted by output name.
        operations: Compiled operations, sorted by operation id.
        missing_operations: Requested ids that no file declares.
        skipped_operations: Requested ids that are not GET operations.
        warnings: Non-fatal errors (unreadable files, dropped parameters).
        written_files: Locations of the emitted modules.
    """

    types: list[GeneratedType] = field(default_factory=list)
    operations: list[CompiledOperation] = field(default_factory=list)
    missing_operations: list[str] = field(default_factory=list)
    skipped_operations: list[str] = field(default_factory=list)
    warnings: list[AzSdkGenError] = field(default_factory=list)
    written_files: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_operations


class Codegen:
    """Runs the generator for one configuration.

    Each call to ``build`` or ``generate`` starts from fresh per-run state
    (reference cache, name registry, inline enums, external file cache); only
    the parsed SpecIndex is reused.

    Example:
        >>> config = GeneratorConfig(specs_dir='./specification', operations=['Users_Get'])
        >>> result = Codegen(config).generate()
        >>> [t.output_name for t in result.types]
        ['User', 'UserProfile']
    """

    def __init__(self, config: GeneratorConfig, index: SpecIndex | None = None):
        self.config = config
        self._index = index

    @property
    def index(self) -> SpecIndex:
        if self._index is None:
            self._index = SpecIndex.load(
                self.config.spec_roots,
                exclude=self.config.exclude,
                follow_external_refs=self.config.follow_external_refs,
            )
        return self._index

    @property
    def package_dir(self) -> UPath:
        return UPath(self.config.output_dir) / self.config.package.replace('.', '/')

    def _requested_operations(self) -> list[str]:
        if self.config.operations:
            return sorted(dict.fromkeys(self.config.operations))
        return [
            operation_id
            for operation_id, operation in self.index.operations.items()
            if operation.http_method == 'GET'
        ]

    def build(self) -> GenerationResult:
        """Compile operations and generate types without emitting anything.

        Raises:
            ReferenceNotFoundError: If any reachable reference is broken.
            MalformedReferenceError: If any reachable reference is malformed.
        """
        index = self.index
        types = TypeGenerator(index)
        compiler = OperationCompiler(index, types)
        result = GenerationResult(warnings=list(index.load_errors))

        used_methods: set[str] = set()
        for operation_id in self._requested_operations():
            try:
                operation = index.find_operation_spec(operation_id)
            except SpecNotFoundError as e:
                logger.warning(str(e))
                result.missing_operations.append(operation_id)
                continue

            try:
                compiled = compiler.compile(operation)
            except UnsupportedFeatureError as e:
                logger.warning(f'Skipping {operation_id}: {e}')
                result.skipped_operations.append(operation_id)
                continue

            compiled.method_name = unique_name(compiled.method_name, used_methods)
            used_methods.add(compiled.method_name)
            result.operations.append(compiled)

        if self.config.generate_all_definitions:
            result.types = types.generate_all()
        else:
            result.types = types.generate_closure(
                operation.return_type for operation in result.operations
            )
        result.warnings.extend(compiler.warnings)

        logger.info(
            f'Compiled {len(result.operations)} operations and '
            f'{len(result.types)} types'
        )
        return result

    def generate(self, emitter: CodeEmitter | None = None) -> GenerationResult:
        """Build and emit the client package.

        Args:
            emitter: Where to emit; defaults to a FileEmitter writing into
                ``output_dir/<package>``.

        Returns:
            The generation result, including the written file locations.
        """
        result = self.build()
        emitter = emitter or FileEmitter(
            self.package_dir, client_class_name=self.config.client_class_name
        )
        result.written_files = emitter.emit(result.types, result.operations)
        logger.info(f'Wrote {len(result.written_files)} files to {self.package_dir}')
        return result
