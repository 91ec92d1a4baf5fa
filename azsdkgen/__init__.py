"""azsdkgen - Generate typed Python clients from Azure OpenAPI specifications.

azsdkgen indexes a versioned corpus of Swagger 2.0 files (such as
azure-rest-api-specs), resolves cross-file references and allOf
inheritance, and emits Pydantic models plus an httpx-based client class for
the GET operations you ask for.

Quick Start:
    >>> from azsdkgen import Codegen, GeneratorConfig
    >>>
    >>> config = GeneratorConfig(
    ...     specs_dir='azure-rest-api-specs/specification',
    ...     operations=['VirtualNetworks_Get'],
    ...     output_dir='./generated',
    ... )
    >>> Codegen(config).generate()

CLI Usage:
    $ azsdkgen generate VirtualNetworks_Get -s ./specification -o ./generated
    $ azsdkgen operations -s ./specification
"""

from azsdkgen.codegen.codegen import Codegen, GenerationResult
from azsdkgen.codegen.spec_index import SpecIndex
from azsdkgen.config import GeneratorConfig, get_config
from azsdkgen.exceptions import (
    AzSdkGenError,
    CodeGenerationError,
    ConfigurationError,
    ExternalResourceUnavailableError,
    MalformedReferenceError,
    OperationGenerationError,
    OutputError,
    ReferenceNotFoundError,
    SchemaReferenceError,
    SpecError,
    SpecLoadError,
    SpecNotFoundError,
    TypeGenerationError,
    UnsupportedFeatureError,
)

__all__ = [
    # Main classes
    'Codegen',
    'GenerationResult',
    'SpecIndex',
    # Configuration
    'GeneratorConfig',
    'get_config',
    # Exceptions
    'AzSdkGenError',
    'SpecError',
    'SpecLoadError',
    'SpecNotFoundError',
    'SchemaReferenceError',
    'ReferenceNotFoundError',
    'MalformedReferenceError',
    'ExternalResourceUnavailableError',
    'CodeGenerationError',
    'TypeGenerationError',
    'OperationGenerationError',
    'ConfigurationError',
    'OutputError',
    'UnsupportedFeatureError',
]
