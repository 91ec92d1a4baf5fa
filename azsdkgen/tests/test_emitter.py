"""Tests for rendering generated types and clients."""

import ast
import sys
import types

import pytest

from azsdkgen.codegen.ast_utils import ImportCollector
from azsdkgen.codegen.emitter import CodeEmitter, FileEmitter, StringEmitter
from azsdkgen.codegen.operations import CompiledOperation, ParameterDescriptor
from azsdkgen.codegen.types import (
    INT32,
    STRING,
    GeneratedField,
    GeneratedType,
    TypeRef,
    enum_constants,
)
from azsdkgen.exceptions import CodeGenerationError, OutputError


@pytest.fixture
def exec_module(monkeypatch):
    """Execute generated source as a registered module and return its namespace."""

    def execute(source: str, name: str) -> dict:
        module = types.ModuleType(name)
        monkeypatch.setitem(sys.modules, name, module)
        exec(compile(source, f'{name}.py', 'exec'), module.__dict__)
        return module.__dict__

    return execute


@pytest.fixture
def status_type():
    return GeneratedType(
        output_name='Status',
        is_enum=True,
        enum_constants=enum_constants(['Active', 'Inactive', 'in-progress']),
        source_file='svc/api.json',
        source_line=12,
        description='Lifecycle state.',
    )


@pytest.fixture
def thing_type():
    return GeneratedType(
        output_name='Thing',
        is_enum=False,
        fields=[
            GeneratedField('id', STRING, 'id'),
            GeneratedField('clazz', STRING, 'class'),
            GeneratedField('defaultValue', INT32, 'default-value'),
            GeneratedField('extra', TypeRef.map_of(TypeRef('any')), 'extra'),
        ],
        source_file='svc/api.json',
        source_line=40,
    )


@pytest.fixture
def operation():
    return CompiledOperation(
        operation_id='Things_Get',
        method_name='getThings',
        http_method='GET',
        path='/groups/{group}/things/{name}',
        parameters=[
            ParameterDescriptor('group', 'group', 'path', True, 'The group.'),
            ParameterDescriptor('name', 'name', 'path', True, 'Parameter name'),
            ParameterDescriptor('$filter', 'filter', 'query', False, 'OData\n   filter.'),
            ParameterDescriptor('$top', 'top', 'query', True, 'Page size.', INT32),
        ],
        return_type=TypeRef.named('Thing'),
        description='Gets a thing.',
        api_version='2024-01-01',
        source_file='svc/stable/2024-01-01/api.json',
    )


class TestRenderEnum:
    """Tests for enum modules."""

    def test_module_source(self, status_type):
        """Enum modules import Enum and carry the traceability docstring."""
        emitter = StringEmitter()
        emitter.emit_models([status_type])

        source = emitter.get_module('models/status.py')

        assert source.startswith('"""Generated from svc/api.json:12"""')
        assert 'from __future__ import annotations' in source
        assert 'from enum import Enum as _Enum' in source
        assert 'class Status(_Enum):' in source
        assert "IN_PROGRESS = 'in-progress'" in source
        assert 'UNKNOWN_TO_SDK = None' in source

    def test_sentinel_behaviour(self, status_type, exec_module):
        """Unknown and None values decode to the sentinel."""
        emitter = StringEmitter()
        emitter.emit_models([status_type])

        source = emitter.get_module('models/status.py')
        status = exec_module(source, 'generated_status')['Status']

        assert status('Active') is status.ACTIVE
        assert status('Deleted') is status.UNKNOWN_TO_SDK
        assert status.from_value('Deleted') is status.UNKNOWN_TO_SDK
        assert status.from_value(None) is status.UNKNOWN_TO_SDK
        assert status.__doc__ == 'Lifecycle state.'


class TestRenderRecord:
    """Tests for record modules."""

    def test_aliases(self, thing_type):
        """Renamed fields keep their wire names as aliases."""
        emitter = StringEmitter()
        emitter.emit_models([thing_type])

        source = emitter.get_module('models/thing.py')

        assert 'class Thing(_BaseModel):' in source
        assert 'id: str | None = None' in source
        assert "clazz: str | None = _Field(default=None, alias='class')" in source
        assert "defaultValue: int | None = _Field(default=None, alias='default-value')" in source
        assert 'from typing import Any' in source

    def test_round_trip_wire_names(self, thing_type, exec_module):
        """The generated model parses and dumps the original JSON keys."""
        emitter = StringEmitter()
        emitter.emit_models([thing_type])
        source = emitter.get_module('models/thing.py')
        thing = exec_module(source, 'generated_thing')['Thing']

        value = thing.model_validate({'id': 'a', 'class': 'gold', 'default-value': 3})

        assert value.clazz == 'gold'
        assert value.defaultValue == 3
        assert value.model_dump(by_alias=True, exclude_none=True) == {
            'id': 'a',
            'class': 'gold',
            'default-value': 3,
        }

    def test_fields_named_like_helpers(self, exec_module):
        """Fields named after pydantic helpers do not shadow the imported ones."""
        helpers = GeneratedType(
            output_name='Helpers',
            is_enum=False,
            fields=[
                GeneratedField('Field', STRING, 'Field'),
                GeneratedField('BaseModel', STRING, 'BaseModel'),
                GeneratedField('ConfigDict', STRING, 'ConfigDict'),
                GeneratedField('defaultValue', INT32, 'default-value'),
            ],
        )
        emitter = StringEmitter()
        emitter.emit_models([helpers])
        source = emitter.get_module('models/helpers.py')

        model = exec_module(source, 'generated_helpers')['Helpers']
        value = model.model_validate({'Field': 'f', 'BaseModel': 'b', 'default-value': 1})

        assert 'from pydantic import BaseModel as _BaseModel, ConfigDict as _ConfigDict, Field as _Field' in source
        assert value.Field == 'f'
        assert value.BaseModel == 'b'
        assert value.defaultValue == 1

    def test_empty_record(self):
        """Records without fields still render a valid class."""
        emitter = StringEmitter()
        emitter.emit_models([GeneratedType(output_name='Empty', is_enum=False)])

        assert 'class Empty(_BaseModel):' in emitter.get_module('models/empty.py')

    def test_root_model(self, exec_module):
        """Non-record definitions wrap their type in a RootModel."""
        names = GeneratedType(
            output_name='NameList', is_enum=False, root=TypeRef.list_of(STRING)
        )
        emitter = StringEmitter()
        emitter.emit_models([names])
        source = emitter.get_module('models/name_list.py')

        name_list = exec_module(source, 'generated_name_list')['NameList']

        assert 'class NameList(_RootModel):' in source
        assert name_list.model_validate(['a', 'b']).root == ['a', 'b']


class TestModelsInit:
    """Tests for models/__init__.py."""

    def test_exports_and_rebuild(self, status_type, thing_type):
        """Every type is imported and models are rebuilt."""
        emitter = StringEmitter()
        emitter.emit_models([status_type, thing_type])

        source = emitter.get_module('models/__init__.py')

        assert 'from .status import Status' in source
        assert 'from .thing import Thing' in source
        assert "__all__ = ['Status', 'Thing']" in source
        assert 'for _model in (Thing,):' in source
        assert '_model.model_rebuild(force=True, _types_namespace=_types_namespace)' in source

    def test_module_name_collisions(self):
        """Types whose snake_case names collide get distinct modules."""
        generated = [
            GeneratedType(output_name='HTTPHeader', is_enum=False),
            GeneratedType(output_name='HttpHeader', is_enum=False),
        ]

        assert CodeEmitter.module_names(generated) == {
            'HTTPHeader': 'http_header',
            'HttpHeader': 'http_header2',
        }


class TestRenderClient:
    """Tests for client.py."""

    def test_method_signature(self, operation):
        """Path parameters are positional, query parameters keyword-only."""
        emitter = StringEmitter(client_class_name='ThingsClient')
        emitter.emit_client([operation])

        tree = ast.parse(emitter.get_module('client.py'))
        client = next(node for node in tree.body if isinstance(node, ast.ClassDef))
        method = next(
            node for node in client.body
            if isinstance(node, ast.FunctionDef) and node.name == 'getThings'
        )

        assert client.name == 'ThingsClient'
        assert [arg.arg for arg in method.args.args] == ['self', 'group', 'name']
        assert [arg.arg for arg in method.args.kwonlyargs] == ['filter', 'top']
        assert ast.unparse(method.args.kwonlyargs[1].annotation) == 'int'
        assert ast.unparse(method.args.kwonlyargs[0].annotation) == 'str | None'
        assert ast.unparse(method.returns) == 'Thing'

    def test_imports(self, operation):
        """The client imports httpx and the models it returns."""
        emitter = StringEmitter()
        emitter.emit_client([operation])
        source = emitter.get_module('client.py')

        assert 'import httpx' in source
        assert 'from .models import Thing' in source
        assert 'from urllib.parse import quote' in source
        assert 'from pydantic import TypeAdapter' in source

    def test_docstring(self, operation):
        """Method docstrings document parameters and the operation."""
        emitter = StringEmitter()
        emitter.emit_client([operation])
        tree = ast.parse(emitter.get_module('client.py'))
        client = next(node for node in tree.body if isinstance(node, ast.ClassDef))
        method = next(
            node for node in client.body
            if isinstance(node, ast.FunctionDef) and node.name == 'getThings'
        )

        docstring = ast.get_docstring(method)

        assert docstring.startswith('Gets a thing.')
        assert 'filter: OData filter.' in docstring
        assert 'Operation ID: Things_Get' in docstring
        assert 'HTTP Method: GET' in docstring
        assert 'URL: /groups/{group}/things/{name}' in docstring
        assert 'API Version: 2024-01-01' in docstring

    def test_no_operations(self):
        """An empty client is still valid Python."""
        emitter = StringEmitter()
        emitter.emit_client([])

        assert 'from .models' not in emitter.get_module('client.py')


class TestEmit:
    """Tests for whole-package emission."""

    def test_layout(self, status_type, thing_type, operation):
        """The package has models, a client and an __init__."""
        emitter = StringEmitter()

        written = emitter.emit([thing_type, status_type], [operation])

        assert written == [
            'models/status.py',
            'models/thing.py',
            'models/__init__.py',
            'client.py',
            '__init__.py',
        ]
        init = emitter.get_module('__init__.py')
        assert 'from .client import AzureClient' in init
        assert "__all__ = ['AzureClient', 'Status', 'Thing']" in init

    def test_file_emitter(self, tmp_path, status_type):
        """FileEmitter writes below its output directory."""
        emitter = FileEmitter(tmp_path / 'pkg')

        emitter.emit([status_type], [])

        assert (tmp_path / 'pkg' / 'models' / 'status.py').exists()
        assert (tmp_path / 'pkg' / 'client.py').exists()
        assert len(emitter.get_written_files()) == 4

    def test_file_emitter_output_error(self, tmp_path, status_type):
        """Write failures become OutputError."""
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        with pytest.raises(OutputError):
            FileEmitter(blocker / 'pkg').emit([status_type], [])

    def test_invalid_syntax(self):
        """Modules that do not compile are rejected before writing."""
        emitter = StringEmitter()
        bad = [ast.Expr(value=ast.Name(id='1abc', ctx=ast.Load()))]

        with pytest.raises(CodeGenerationError):
            emitter.emit_module(bad, 'bad.py')

        assert emitter.get_all_modules() == {}


class TestImportCollector:
    """Tests for ImportCollector ordering."""

    def test_order(self):
        """__future__, stdlib, third-party and relative imports, in that order."""
        collector = ImportCollector()
        collector.add_imports({'.models': {'User'}, 'pydantic': {'TypeAdapter', 'BaseModel'}})
        collector.add_import('typing', 'Any')
        collector.add_import('__future__', 'annotations')
        collector.add_module('httpx')

        source = ast.unparse(ast.Module(body=collector.to_ast(), type_ignores=[]))

        assert source.splitlines() == [
            'from __future__ import annotations',
            'from typing import Any',
            'import httpx',
            'from pydantic import BaseModel, TypeAdapter',
            'from .models import User',
        ]
        assert collector.get_modules() == {'.models', 'pydantic', 'typing', '__future__', 'httpx'}

    def test_aliases(self):
        """Aliased names render with ``as`` next to plain ones."""
        collector = ImportCollector()
        collector.add_import('pydantic', 'Field', alias='_Field')
        collector.add_import('pydantic', 'BaseModel')

        source = ast.unparse(ast.Module(body=collector.to_ast(), type_ignores=[]))

        assert source == 'from pydantic import BaseModel, Field as _Field'
