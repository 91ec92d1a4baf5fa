"""Code generation module for azsdkgen.

Main Components:
    - SpecIndex: Indexes definitions and operations of a specification corpus
    - ReferenceResolver: Resolves $ref strings across files
    - InheritanceMerger: Flattens allOf chains
    - TypeGenerator / TypeMapper / EnumExtractor: Build generated types
    - OperationCompiler: Turns GET operations into client methods
    - CodeEmitter: Renders everything as Python modules
    - Codegen: Runs all of the above for one configuration

Example:
    >>> from azsdkgen.codegen import Codegen
    >>> from azsdkgen.config import GeneratorConfig
    >>>
    >>> config = GeneratorConfig(specs_dir='./specification', operations=['Users_Get'])
    >>> Codegen(config).generate()
"""

from azsdkgen.codegen.ast_utils import ImportCollector
from azsdkgen.codegen.codegen import Codegen, GenerationResult
from azsdkgen.codegen.emitter import CodeEmitter, FileEmitter, StringEmitter
from azsdkgen.codegen.inheritance import InheritanceMerger, MergedProperty
from azsdkgen.codegen.operations import (
    CompiledOperation,
    ExternalFileCache,
    OperationCompiler,
    ParameterDescriptor,
)
from azsdkgen.codegen.schema import SchemaKind, SchemaNode
from azsdkgen.codegen.schema_resolver import ReferenceResolver, ResolvedReference
from azsdkgen.codegen.spec_index import DefinitionKey, Operation, SpecIndex
from azsdkgen.codegen.type_registry import TypeInfo, TypeRegistry
from azsdkgen.codegen.types import (
    EnumExtractor,
    GeneratedField,
    GeneratedType,
    InlineEnumEntry,
    TypeGenerator,
    TypeMapper,
    TypeRef,
)
from azsdkgen.codegen.versions import ApiVersion, latest_by_embedded_date, select_latest

__all__ = [
    # Main codegen class
    'Codegen',
    'GenerationResult',
    # Indexing
    'SpecIndex',
    'DefinitionKey',
    'Operation',
    'SchemaNode',
    'SchemaKind',
    'ApiVersion',
    'select_latest',
    'latest_by_embedded_date',
    # Resolution
    'ReferenceResolver',
    'ResolvedReference',
    'InheritanceMerger',
    'MergedProperty',
    # Type generation
    'TypeGenerator',
    'TypeMapper',
    'TypeRef',
    'TypeRegistry',
    'TypeInfo',
    'EnumExtractor',
    'InlineEnumEntry',
    'GeneratedType',
    'GeneratedField',
    # Operations
    'OperationCompiler',
    'CompiledOperation',
    'ParameterDescriptor',
    'ExternalFileCache',
    # Code emission
    'CodeEmitter',
    'FileEmitter',
    'StringEmitter',
    'ImportCollector',
]
