"""AST builders for the generated client class.

The generated client wraps an ``httpx.Client`` and exposes one method per
compiled GET operation. All request plumbing lives in a single private
``_get`` helper so the per-operation methods stay one statement long.
"""

import ast

from azsdkgen.codegen.ast_utils import (
    _argument,
    _assign,
    _attr,
    _call,
    _docstring,
    _func,
    _keyword,
    _name,
    _optional_expr,
    _subscript,
)
from azsdkgen.codegen.operations import CompiledOperation, ParameterDescriptor

__all__ = ['generate_client_class', 'operation_docstring']

ImportDict = dict[str, set[str]]


def generate_client_class(
    class_name: str, operations: list[CompiledOperation]
) -> tuple[ast.ClassDef, ImportDict]:
    """Generate the client class for a batch of compiled operations.

    Args:
        class_name: Name of the generated class.
        operations: Operations to expose, already in output order.

    Returns:
        Tuple of (class AST node, required imports). ``httpx`` itself is
        imported as a module by the caller.
    """
    imports: ImportDict = {
        'typing': {'Any'},
        'urllib.parse': {'quote'},
        'pydantic': {'TypeAdapter'},
    }

    class_body: list[ast.stmt] = [
        _docstring(
            f"""Client for {len(operations)} generated operation(s).

Args:
    http_client: An httpx.Client configured with the service base URL
        and authentication.
    api_version: Overrides the api-version sent by every method.
"""
        ),
        _build_init_method(),
        _build_get_method(),
    ]
    class_body.extend(build_operation_method(operation) for operation in operations)

    class_def = ast.ClassDef(
        name=class_name,
        bases=[],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )
    return class_def, imports


def _build_init_method() -> ast.FunctionDef:
    """Build the __init__ method for the client class."""
    body: list[ast.stmt] = [
        # self._http_client = http_client
        _assign(_attr('self', '_http_client'), _name('http_client')),
        # self._api_version = api_version
        _assign(_attr('self', '_api_version'), _name('api_version')),
    ]
    return _func(
        '__init__',
        args=[
            _argument('self'),
            _argument('http_client', _attr('httpx', 'Client')),
            _argument('api_version', _optional_expr(_name('str'))),
        ],
        body=body,
        returns=ast.Constant(value=None),
        defaults=[ast.Constant(value=None)],
    )


def _build_get_method() -> ast.FunctionDef:
    """Build the _get method shared by every operation method."""
    any_dict = _subscript('dict', ast.Tuple(elts=[_name('str'), _name('Any')], ctx=ast.Load()))

    body: list[ast.stmt] = [
        # url = template
        _assign(_name('url'), _name('template')),
        # for name, value in path_params.items():
        #     url = url.replace('{' + name + '}', quote(str(value), safe=''))
        ast.For(
            target=ast.Tuple(
                elts=[
                    ast.Name(id='name', ctx=ast.Store()),
                    ast.Name(id='value', ctx=ast.Store()),
                ],
                ctx=ast.Store(),
            ),
            iter=_call(_attr('path_params', 'items')),
            body=[
                _assign(
                    _name('url'),
                    _call(
                        _attr('url', 'replace'),
                        [
                            ast.BinOp(
                                left=ast.BinOp(
                                    left=ast.Constant(value='{'),
                                    op=ast.Add(),
                                    right=_name('name'),
                                ),
                                op=ast.Add(),
                                right=ast.Constant(value='}'),
                            ),
                            _call(
                                _name('quote'),
                                [_call(_name('str'), [_name('value')])],
                                [_keyword('safe', ast.Constant(value=''))],
                            ),
                        ],
                    ),
                )
            ],
            orelse=[],
        ),
        # params = {key: value for key, value in query.items() if value is not None}
        _assign(
            _name('params'),
            ast.DictComp(
                key=_name('key'),
                value=_name('value'),
                generators=[
                    ast.comprehension(
                        target=ast.Tuple(
                            elts=[
                                ast.Name(id='key', ctx=ast.Store()),
                                ast.Name(id='value', ctx=ast.Store()),
                            ],
                            ctx=ast.Store(),
                        ),
                        iter=_call(_attr('query', 'items')),
                        ifs=[
                            ast.Compare(
                                left=_name('value'),
                                ops=[ast.IsNot()],
                                comparators=[ast.Constant(value=None)],
                            )
                        ],
                        is_async=0,
                    )
                ],
            ),
        ),
        # version = self._api_version or api_version
        _assign(
            _name('version'),
            ast.BoolOp(
                op=ast.Or(),
                values=[_attr('self', '_api_version'), _name('api_version')],
            ),
        ),
        # if version is not None: params['api-version'] = version
        ast.If(
            test=ast.Compare(
                left=_name('version'),
                ops=[ast.IsNot()],
                comparators=[ast.Constant(value=None)],
            ),
            body=[
                _assign(
                    ast.Subscript(
                        value=_name('params'),
                        slice=ast.Constant(value='api-version'),
                        ctx=ast.Store(),
                    ),
                    _name('version'),
                )
            ],
            orelse=[],
        ),
        # response = self._http_client.get(url, params=params)
        _assign(
            _name('response'),
            _call(
                _attr(_attr('self', '_http_client'), 'get'),
                [_name('url')],
                [_keyword('params', _name('params'))],
            ),
        ),
        # response.raise_for_status()
        ast.Expr(value=_call(_attr('response', 'raise_for_status'))),
        # if not response.content: return None
        ast.If(
            test=ast.UnaryOp(op=ast.Not(), operand=_attr('response', 'content')),
            body=[ast.Return(value=ast.Constant(value=None))],
            orelse=[],
        ),
        # return TypeAdapter(response_type).validate_python(response.json())
        ast.Return(
            value=_call(
                _attr(_call(_name('TypeAdapter'), [_name('response_type')]), 'validate_python'),
                [_call(_attr('response', 'json'))],
            )
        ),
    ]

    return _func(
        '_get',
        args=[
            _argument('self'),
            _argument('template', _name('str')),
            _argument('path_params', any_dict),
            _argument('query', any_dict),
            _argument('api_version', _optional_expr(_name('str'))),
            _argument('response_type', _name('Any')),
        ],
        body=body,
        returns=_name('Any'),
    )


def operation_docstring(operation: CompiledOperation) -> str:
    """Structured documentation for one generated method."""
    lines = [operation.description.strip(), '']
    if operation.parameters:
        lines.append('Args:')
        for parameter in operation.parameters:
            description = ' '.join(parameter.description.split())
            lines.append(f'    {parameter.safe_name}: {description}')
        lines.append('')
    lines.append('Returns:')
    lines.append(f'    {operation.return_type.annotation()}')
    lines.append('')
    lines.append(f'Operation ID: {operation.operation_id}')
    lines.append(f'HTTP Method: {operation.http_method}')
    lines.append(f'URL: {operation.path}')
    if operation.api_version:
        lines.append(f'API Version: {operation.api_version}')
    return '\n'.join(lines) + '\n'


def _parameter_annotation(parameter: ParameterDescriptor) -> ast.expr:
    annotation = parameter.type.to_ast()
    return annotation if parameter.required else _optional_expr(annotation)


def _params_dict(parameters: list[ParameterDescriptor]) -> ast.Dict:
    return ast.Dict(
        keys=[ast.Constant(value=p.wire_name) for p in parameters],
        values=[_name(p.safe_name) for p in parameters],
    )


def build_operation_method(operation: CompiledOperation) -> ast.FunctionDef:
    """Build the client method for one compiled operation.

    Path parameters are positional; query parameters are keyword-only so
    required and optional ones can be mixed in declaration order.
    """
    path_params = operation.path_parameters
    query_params = operation.query_parameters

    body: list[ast.stmt] = [
        _docstring(operation_docstring(operation)),
        # return self._get(template, {...}, {...}, api_version, ReturnType)
        ast.Return(
            value=_call(
                _attr('self', '_get'),
                [
                    ast.Constant(value=operation.path),
                    _params_dict(path_params),
                    _params_dict(query_params),
                    ast.Constant(value=operation.api_version),
                    operation.return_type.to_ast(),
                ],
            )
        ),
    ]

    return _func(
        operation.method_name,
        args=[_argument('self')]
        + [_argument(p.safe_name, _parameter_annotation(p)) for p in path_params],
        body=body,
        returns=operation.return_type.to_ast(),
        kwonlyargs=[_argument(p.safe_name, _parameter_annotation(p)) for p in query_params],
        kw_defaults=[
            None if p.required else ast.Constant(value=None) for p in query_params
        ],
    )
