"""Code emitter interfaces and implementations for code generation output.

This module provides the CodeEmitter interface, which renders generated
types and compiled operations into Python modules, and two concrete
emitters: FileEmitter writes them to disk, StringEmitter keeps them in
memory.

Layout of the emitted package::

    <package>/__init__.py
    <package>/client.py
    <package>/models/__init__.py
    <package>/models/<type_module>.py   one per generated type
"""

import ast
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from upath import UPath

from azsdkgen.codegen.ast_utils import (
    ImportCollector,
    _all,
    _ann_assign,
    _argument,
    _assign,
    _attr,
    _call,
    _docstring,
    _func,
    _keyword,
    _name,
    _optional_expr,
)
from azsdkgen.codegen.client import generate_client_class
from azsdkgen.codegen.operations import CompiledOperation
from azsdkgen.codegen.types import GeneratedType
from azsdkgen.codegen.utils import unique_name
from azsdkgen.exceptions import CodeGenerationError, OutputError

__all__ = ['CodeEmitter', 'FileEmitter', 'StringEmitter']

logger = logging.getLogger(__name__)


class CodeEmitter(ABC):
    """Abstract base class for code emitters.

    Subclasses only decide where rendered modules go by implementing
    ``_write``; rendering is shared.
    """

    def __init__(self, client_class_name: str = 'AzureClient', validate_syntax: bool = True):
        """Initialize the emitter.

        Args:
            client_class_name: Name of the generated client class.
            validate_syntax: Whether to compile each module before writing it.
        """
        self.client_class_name = client_class_name
        self.validate_syntax = validate_syntax

    @abstractmethod
    def _write(self, relative_path: str, source: str) -> str:
        """Store one rendered module and return where it went."""
        pass

    def emit(
        self, types: list[GeneratedType], operations: list[CompiledOperation]
    ) -> list[str]:
        """Emit the whole package.

        Args:
            types: Generated types; emitted sorted by output name.
            operations: Compiled operations; emitted sorted by operation id.

        Returns:
            The locations of every emitted module.
        """
        types = sorted(types, key=lambda generated: generated.output_name)
        operations = sorted(operations, key=lambda operation: operation.operation_id)

        written = self.emit_models(types)
        written.append(self.emit_client(operations))
        written.append(self.emit_init(types))
        return written

    def emit_module(
        self,
        body: list[ast.stmt],
        path: str,
        docstring: str | None = None,
    ) -> str:
        """Render a module from AST statements and store it.

        Args:
            body: List of AST statements forming the module body.
            path: Module path relative to the package root, e.g. 'models/user.py'.
            docstring: Optional module-level docstring.

        Returns:
            The location returned by ``_write``.

        Raises:
            CodeGenerationError: If the module cannot be unparsed or is not
                valid Python.
        """
        if docstring:
            body = [_docstring(docstring)] + body

        module = ast.Module(body=body, type_ignores=[])
        ast.fix_missing_locations(module)

        try:
            source = ast.unparse(module)
        except Exception as e:
            raise CodeGenerationError('Failed to unparse module', context=path, cause=e)

        if self.validate_syntax:
            self._validate_syntax(source, path)

        return self._write(path, source + '\n')

    def emit_models(self, types: list[GeneratedType]) -> list[str]:
        """Emit one module per generated type plus ``models/__init__.py``."""
        module_names = self.module_names(types)
        written = [
            self.emit_module(
                self.render_type(generated),
                f'models/{module_names[generated.output_name]}.py',
                docstring=generated.traceability,
            )
            for generated in types
        ]
        written.append(
            self.emit_module(
                self.render_models_init(types, module_names),
                'models/__init__.py',
                docstring='Generated models.',
            )
        )
        return written

    def emit_client(self, operations: list[CompiledOperation]) -> str:
        """Emit ``client.py`` holding the client class."""
        class_def, imports = generate_client_class(self.client_class_name, operations)

        collector = ImportCollector()
        collector.add_import('__future__', 'annotations')
        collector.add_imports(imports)
        collector.add_module('httpx')
        model_names = sorted(
            {
                named.name
                for operation in operations
                for named in operation.return_type.named_types()
            }
        )
        if model_names:
            collector.add_imports({'.models': set(model_names)})

        return self.emit_module(
            collector.to_ast() + [class_def],
            'client.py',
            docstring=f'Generated client with {len(operations)} operation(s).',
        )

    def emit_init(self, types: list[GeneratedType]) -> str:
        """Emit the package ``__init__.py`` re-exporting the client and models."""
        names = [generated.output_name for generated in types]
        body: list[ast.stmt] = [
            ast.ImportFrom(
                module='client',
                names=[ast.alias(name=self.client_class_name, asname=None)],
                level=1,
            )
        ]
        if names:
            body.append(
                ast.ImportFrom(
                    module='models',
                    names=[ast.alias(name=name, asname=None) for name in names],
                    level=1,
                )
            )
        body.append(_all([self.client_class_name] + names))
        return self.emit_module(body, '__init__.py', docstring='Generated Azure client package.')

    @staticmethod
    def module_names(types: list[GeneratedType]) -> dict[str, str]:
        """Map output names to unique snake_case module names."""
        used: set[str] = {'__init__'}
        names = {}
        for generated in types:
            name = unique_name(generated.module_name, used)
            used.add(name)
            names[generated.output_name] = name
        return names

    def render_type(self, generated: GeneratedType) -> list[ast.stmt]:
        """Module body (imports and class) for one generated type."""
        collector = ImportCollector()
        collector.add_import('__future__', 'annotations')

        if generated.is_enum:
            collector.add_import('enum', 'Enum', alias='_Enum')
            class_def = self._render_enum(generated)
        elif generated.is_root:
            collector.add_import('pydantic', 'RootModel', alias='_RootModel')
            if generated.root.uses_any():
                collector.add_import('typing', 'Any')
            class_def = self._render_root(generated)
        else:
            collector.add_import('pydantic', 'BaseModel', alias='_BaseModel')
            collector.add_import('pydantic', 'ConfigDict', alias='_ConfigDict')
            if any(f.has_alias for f in generated.fields):
                collector.add_import('pydantic', 'Field', alias='_Field')
            if any(f.type.uses_any() for f in generated.fields):
                collector.add_import('typing', 'Any')
            class_def = self._render_record(generated)

        return collector.to_ast() + [class_def]

    def _class(self, generated: GeneratedType, bases: list[ast.expr], body: list[ast.stmt]) -> ast.ClassDef:
        if generated.description:
            body = [_docstring(generated.description.strip())] + body
        return ast.ClassDef(
            name=generated.output_name,
            bases=bases,
            keywords=[],
            body=body or [ast.Pass()],
            decorator_list=[],
            type_params=[],
        )

    def _render_record(self, generated: GeneratedType) -> ast.ClassDef:
        body: list[ast.stmt] = [
            # model_config = _ConfigDict(populate_by_name=True, protected_namespaces=())
            _assign(
                _name('model_config'),
                _call(
                    _name('_ConfigDict'),
                    keywords=[
                        _keyword('populate_by_name', ast.Constant(value=True)),
                        _keyword('protected_namespaces', ast.Tuple(elts=[], ctx=ast.Load())),
                    ],
                ),
            )
        ]
        for generated_field in generated.fields:
            if generated_field.has_alias:
                # _Field(default=None, alias='wire-name')
                value = _call(
                    _name('_Field'),
                    keywords=[
                        _keyword('default', ast.Constant(value=None)),
                        _keyword('alias', ast.Constant(value=generated_field.wire_name)),
                    ],
                )
            else:
                value = ast.Constant(value=None)
            body.append(
                _ann_assign(
                    generated_field.name,
                    _optional_expr(generated_field.type.to_ast()),
                    value,
                )
            )
        return self._class(generated, [_name('_BaseModel')], body)

    def _render_root(self, generated: GeneratedType) -> ast.ClassDef:
        body: list[ast.stmt] = [_ann_assign('root', generated.root.to_ast())]
        return self._class(generated, [_name('_RootModel')], body)

    def _render_enum(self, generated: GeneratedType) -> ast.ClassDef:
        body: list[ast.stmt] = [
            _assign(_name(constant.name), ast.Constant(value=constant.wire_value))
            for constant in generated.enum_constants
        ]
        sentinel = generated.enum_constants[-1].name

        # def _missing_(cls, value): return cls.UNKNOWN_TO_SDK
        body.append(
            _func(
                '_missing_',
                args=[_argument('cls'), _argument('value')],
                body=[ast.Return(value=_attr('cls', sentinel))],
                decorators=[_name('classmethod')],
            )
        )
        # def from_value(cls, value: str | None) -> Enum: return cls(value)
        body.append(
            _func(
                'from_value',
                args=[_argument('cls'), _argument('value', _optional_expr(_name('str')))],
                body=[
                    _docstring(
                        f'Decode a wire value; None and unknown values give {sentinel}.'
                    ),
                    ast.Return(value=_call(_name('cls'), [_name('value')])),
                ],
                returns=_name(generated.output_name),
                decorators=[_name('classmethod')],
            )
        )
        return self._class(generated, [_name('_Enum')], body)

    def render_models_init(
        self, types: list[GeneratedType], module_names: dict[str, str]
    ) -> list[ast.stmt]:
        """Body of ``models/__init__.py``.

        Every model is rebuilt against a namespace holding all generated
        types, which resolves forward references across modules, including
        cyclic ones.
        """
        body: list[ast.stmt] = [
            ast.ImportFrom(
                module=module_names[generated.output_name],
                names=[ast.alias(name=generated.output_name, asname=None)],
                level=1,
            )
            for generated in types
        ]
        body.append(_all(generated.output_name for generated in types))

        models = [generated.output_name for generated in types if not generated.is_enum]
        if models:
            # _types_namespace = {'User': User, ...}
            body.append(
                _assign(
                    _name('_types_namespace'),
                    ast.Dict(
                        keys=[ast.Constant(value=generated.output_name) for generated in types],
                        values=[_name(generated.output_name) for generated in types],
                    ),
                )
            )
            # for _model in (User, ...): _model.model_rebuild(force=True, _types_namespace=...)
            body.append(
                ast.For(
                    target=ast.Name(id='_model', ctx=ast.Store()),
                    iter=ast.Tuple(elts=[_name(name) for name in models], ctx=ast.Load()),
                    body=[
                        ast.Expr(
                            value=_call(
                                _attr('_model', 'model_rebuild'),
                                keywords=[
                                    _keyword('force', ast.Constant(value=True)),
                                    _keyword('_types_namespace', _name('_types_namespace')),
                                ],
                            )
                        )
                    ],
                    orelse=[],
                )
            )
        return body

    def _validate_syntax(self, source: str, path: str) -> None:
        try:
            compile(source, path, 'exec')
        except SyntaxError as e:
            raise CodeGenerationError(
                'Generated code has invalid syntax', context=path, cause=e
            )


class FileEmitter(CodeEmitter):
    """Emits the generated package to disk.

    Example:
        >>> emitter = FileEmitter('./generated/azure_sdk')
        >>> emitter.emit(types, operations)
        >>> emitter.get_written_files()[0]
        'generated/azure_sdk/models/user.py'
    """

    def __init__(
        self,
        output_dir: str | Path | UPath,
        client_class_name: str = 'AzureClient',
        validate_syntax: bool = True,
    ):
        """Initialize the file emitter.

        Args:
            output_dir: The package directory files are written into.
            client_class_name: Name of the generated client class.
            validate_syntax: Whether to validate Python syntax before writing.
        """
        super().__init__(client_class_name, validate_syntax)
        self.output_dir = UPath(output_dir)
        self._written_files: list[str] = []

    def _write(self, relative_path: str, source: str) -> str:
        file_path = self.output_dir / relative_path
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(source, encoding='utf-8')
        except OSError as e:
            raise OutputError(str(file_path), cause=e)

        logger.debug(f'Wrote {file_path}')
        self._written_files.append(str(file_path))
        return str(file_path)

    def get_written_files(self) -> list[str]:
        """Get list of all files written by this emitter."""
        return self._written_files.copy()


class StringEmitter(CodeEmitter):
    """Keeps emitted modules in memory, keyed by relative path.

    Useful for tests and for callers that post-process the generated code.
    """

    def __init__(self, client_class_name: str = 'AzureClient', validate_syntax: bool = True):
        super().__init__(client_class_name, validate_syntax)
        self._modules: dict[str, str] = {}

    def _write(self, relative_path: str, source: str) -> str:
        self._modules[relative_path] = source
        return relative_path

    def get_module(self, path: str) -> str | None:
        return self._modules.get(path)

    def get_all_modules(self) -> dict[str, str]:
        return self._modules.copy()
