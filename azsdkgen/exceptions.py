"""Custom exceptions for azsdkgen.

This module defines the hierarchy of exceptions raised while indexing a
specification corpus, resolving references and generating client code.
Some of them are fatal for a whole run, others are isolated to a single
file or parameter and only reported as warnings.
"""


class AzSdkGenError(Exception):
    """Base exception for all azsdkgen errors.

    All exceptions raised by azsdkgen inherit from this class, making it easy
    to catch all generator errors with a single except clause.

    Example:
        try:
            codegen.generate()
        except AzSdkGenError as e:
            print(f"azsdkgen error: {e}")
    """

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class SpecError(AzSdkGenError):
    """Base exception for specification corpus errors."""

    pass


class SpecLoadError(SpecError):
    """A specification file could not be read or parsed.

    Raised (and usually only collected) while walking the corpus. The
    offending file is skipped and the walk continues.

    Attributes:
        source: The path of the file that failed to load.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        message = f"Failed to load specification '{source}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class SpecNotFoundError(SpecError):
    """No file in the corpus defines the requested operation.

    Attributes:
        operation_id: The operationId that was looked up.
        specs_dir: The corpus root (or comma-separated roots) searched, if known.
    """

    def __init__(self, operation_id: str, specs_dir: str | None = None):
        self.operation_id = operation_id
        self.specs_dir = specs_dir
        message = f"No specification found for operation '{operation_id}'"
        if specs_dir:
            message += f" under '{specs_dir}'"
        super().__init__(message)


class SchemaReferenceError(SpecError):
    """Failed to resolve a $ref reference.

    Attributes:
        reference: The $ref string that could not be resolved.
        reason: Explanation of why the reference couldn't be resolved.
    """

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        self.reason = reason
        message = f"Failed to resolve reference '{reference}'"
        if reason:
            message += f': {reason}'
        super().__init__(message)


class ReferenceNotFoundError(SchemaReferenceError):
    """A well-formed $ref points at a definition that does not exist.

    The message always lists the definitions that do exist in the target
    file so a broken reference can be fixed without opening the corpus.

    Attributes:
        definition_name: The definition name the reference asked for.
        source_file: The file the reference was resolved against.
        available: Definition names present in that file, or None when the
            file itself is not part of the loaded corpus.
    """

    def __init__(
        self,
        reference: str,
        definition_name: str,
        source_file: str,
        available: list[str] | None = None,
    ):
        self.definition_name = definition_name
        self.source_file = source_file
        self.available = sorted(available) if available is not None else None
        reason = (
            f"Referenced definition not found: '{definition_name}' "
            f"in '{source_file}'"
        )
        if self.available is None:
            reason += '. The file is not part of the loaded corpus'
        elif self.available:
            reason += f'. Available definitions: {", ".join(self.available)}'
        else:
            reason += '. The file defines no definitions'
        super().__init__(reference, reason)


class MalformedReferenceError(SchemaReferenceError):
    """A $ref string matches none of the supported shapes.

    Supported shapes are '#/definitions/Name', './file.json#/definitions/Name'
    and any relative 'path/to/file.json#/definitions/Name'.
    """

    def __init__(self, reference: str, reason: str | None = None):
        super().__init__(reference, reason or 'Unsupported reference format')


class ExternalResourceUnavailableError(SpecError):
    """A file referenced from a parameter $ref is missing or unreadable.

    Attributes:
        path: The resolved path (or pointer) that could not be loaded.
        cause: The underlying exception, if any.
    """

    def __init__(self, path: str, cause: Exception | str | None = None):
        self.path = path
        self.cause = cause
        message = f"External resource unavailable: '{path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class CodeGenerationError(AzSdkGenError):
    """Error during code generation.

    Attributes:
        context: Additional context about what was being generated.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self, message: str, context: str | None = None, cause: Exception | None = None
    ):
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f'{message} (while generating {context})'
        if cause:
            full_message += f': {cause}'
        super().__init__(full_message)


class TypeGenerationError(CodeGenerationError):
    """Error generating a type from a definition.

    Attributes:
        type_name: The name of the type being generated.
        schema_path: Where the definition lives, as 'file#/definitions/Name'.
    """

    def __init__(
        self,
        type_name: str,
        schema_path: str | None = None,
        cause: Exception | None = None,
    ):
        self.type_name = type_name
        self.schema_path = schema_path
        message = f"Failed to generate type '{type_name}'"
        if schema_path:
            message += f" at '{schema_path}'"
        super().__init__(message, context=type_name, cause=cause)


class OperationGenerationError(CodeGenerationError):
    """Error compiling an operation into a client method.

    Attributes:
        operation_id: The operationId of the operation.
        method: The HTTP method of the operation.
        path: The URL template of the operation.
    """

    def __init__(
        self,
        operation_id: str,
        method: str | None = None,
        path: str | None = None,
        cause: Exception | None = None,
    ):
        self.operation_id = operation_id
        self.method = method
        self.path = path
        message = f"Failed to compile operation '{operation_id}'"
        if method and path:
            message += f' ({method.upper()} {path})'
        super().__init__(message, context=operation_id, cause=cause)


class ConfigurationError(AzSdkGenError):
    """Error in configuration.

    Attributes:
        config_path: The path to the configuration file, if applicable.
        field: The specific configuration field that is invalid.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        full_message = message
        if config_path:
            full_message = f"{message} in '{config_path}'"
        if field:
            full_message += f' (field: {field})'
        super().__init__(full_message)


class OutputError(AzSdkGenError):
    """Error writing generated output.

    Attributes:
        output_path: The path where output was being written.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        message = f"Failed to write output to '{output_path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class UnsupportedFeatureError(AzSdkGenError):
    """Attempted to use a feature the generator does not support.

    Attributes:
        feature: Description of the unsupported feature.
        suggestion: Optional suggestion for a workaround.
    """

    def __init__(self, feature: str, suggestion: str | None = None):
        self.feature = feature
        self.suggestion = suggestion
        message = f'Unsupported feature: {feature}'
        if suggestion:
            message += f'. {suggestion}'
        super().__init__(message)
