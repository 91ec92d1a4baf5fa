"""AST utilities and import collection for code generation.

This module provides helper functions for building Python AST nodes
and utilities for collecting and organizing imports of generated modules.
"""

import ast
import sys
from collections.abc import Iterable

__all__ = [
    # AST helpers
    '_name',
    '_attr',
    '_subscript',
    '_union_expr',
    '_optional_expr',
    '_argument',
    '_assign',
    '_ann_assign',
    '_call',
    '_keyword',
    '_func',
    '_docstring',
    '_all',
    # Import collection
    'ImportCollector',
]


def _name(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def _attr(value: str | ast.expr, attr: str) -> ast.Attribute:
    return ast.Attribute(
        value=_name(value) if isinstance(value, str) else value,
        attr=attr,
        ctx=ast.Load(),
    )


def _subscript(generic: str, inner: ast.expr) -> ast.Subscript:
    return ast.Subscript(value=_name(generic), slice=inner, ctx=ast.Load())


def _union_expr(types: list[ast.expr]) -> ast.expr:
    # A | B | C (using pipe operator instead of Union[A, B, C])
    if not types:
        raise ValueError('_union_expr requires at least one type')
    result = types[0]
    for t in types[1:]:
        result = ast.BinOp(left=result, op=ast.BitOr(), right=t)
    return result


def _optional_expr(inner: ast.expr) -> ast.expr:
    return _union_expr([inner, ast.Constant(value=None)])


def _argument(name: str, value: ast.expr | None = None) -> ast.arg:
    return ast.arg(
        arg=name,
        annotation=value,
    )


def _assign(target: ast.expr, value: ast.expr) -> ast.Assign:
    if isinstance(target, ast.Name):
        target = ast.Name(id=target.id, ctx=ast.Store())
    elif isinstance(target, (ast.Attribute, ast.Subscript)):
        target.ctx = ast.Store()
    return ast.Assign(
        targets=[target],
        value=value,
    )


def _ann_assign(
    name: str, annotation: ast.expr, value: ast.expr | None = None
) -> ast.AnnAssign:
    return ast.AnnAssign(
        target=ast.Name(id=name, ctx=ast.Store()),
        annotation=annotation,
        value=value,
        simple=1,
    )


def _call(
    func: ast.expr,
    args: list[ast.expr] | None = None,
    keywords: list[ast.keyword] | None = None,
) -> ast.Call:
    return ast.Call(
        func=func,
        args=args or [],
        keywords=keywords or [],
    )


def _keyword(name: str, value: ast.expr) -> ast.keyword:
    return ast.keyword(arg=name, value=value)


def _func(
    name: str,
    args: list[ast.arg],
    body: list[ast.stmt],
    returns: ast.expr | None = None,
    defaults: list[ast.expr] | None = None,
    kwonlyargs: list[ast.arg] | None = None,
    kw_defaults: list[ast.expr | None] | None = None,
    decorators: list[ast.expr] | None = None,
) -> ast.FunctionDef:
    return ast.FunctionDef(
        name=name,
        args=ast.arguments(
            posonlyargs=[],
            args=args,
            vararg=None,
            kwarg=None,
            kwonlyargs=kwonlyargs or [],
            kw_defaults=kw_defaults or [],
            defaults=defaults or [],
        ),
        body=body,
        decorator_list=decorators or [],
        returns=returns,
        type_params=[],
    )


def _docstring(text: str) -> ast.Expr:
    return ast.Expr(value=ast.Constant(value=text))


def _all(names: Iterable[str]) -> ast.Assign:
    return _assign(
        target=_name('__all__'),
        value=ast.List(
            elts=[ast.Constant(value=name) for name in names], ctx=ast.Load()
        ),
    )


# =============================================================================
# Import Collection
# =============================================================================


class ImportCollector:
    """Collects and manages imports for a generated module.

    Imports are deduplicated and emitted in a stable order: ``__future__``
    first, then the standard library, third-party and relative imports.

    Example:
        >>> collector = ImportCollector()
        >>> collector.add_imports({'pydantic': {'BaseModel', 'Field'}})
        >>> collector.add_import('pydantic', 'ConfigDict', alias='_ConfigDict')
        >>> collector.add_module('httpx')
        >>> imports = collector.to_ast()
    """

    def __init__(self):
        """Initialize an empty import collector."""
        self._imports: dict[str, set[tuple[str, str | None]]] = {}
        self._modules: set[str] = set()

    def add_imports(self, imports: dict[str, set[str]]) -> None:
        """Add imports from a dictionary mapping modules to sets of names.

        Args:
            imports: Dictionary mapping module names to sets of imported names.
                    Example: {'typing': {'Any'}, 'pydantic': {'BaseModel'}}
        """
        for module, names in imports.items():
            self._imports.setdefault(module, set()).update((name, None) for name in names)

    def add_import(self, module: str, name: str, alias: str | None = None) -> None:
        """Add a single ``from module import name [as alias]``."""
        self._imports.setdefault(module, set()).add((name, alias))

    def add_module(self, module: str) -> None:
        """Add a plain ``import module``."""
        self._modules.add(module)

    def _get_import_category(self, module: str) -> int:
        """Get the sort category for a module.

        Returns:
            -1 for __future__, 0 for standard library, 1 for third-party,
            2 for relative imports.
        """
        if module == '__future__':
            return -1
        if module.startswith('.'):
            return 2

        base_module = module.split('.')[0]
        if base_module in sys.stdlib_module_names:
            return 0

        return 1

    def to_ast(self) -> list[ast.stmt]:
        """Convert collected imports to sorted AST import statements."""
        entries: list[tuple[int, str, ast.stmt]] = []

        for module in self._modules:
            entries.append(
                (
                    self._get_import_category(module),
                    module,
                    ast.Import(names=[ast.alias(name=module, asname=None)]),
                )
            )

        for module, names in self._imports.items():
            if module.startswith('.'):
                level = len(module) - len(module.lstrip('.'))
                import_module = module.lstrip('.') or None
            else:
                level = 0
                import_module = module

            entries.append(
                (
                    self._get_import_category(module),
                    module,
                    ast.ImportFrom(
                        module=import_module,
                        names=[
                            ast.alias(name=name, asname=alias)
                            for name, alias in sorted(names, key=lambda n: (n[0], n[1] or ''))
                        ],
                        level=level,
                    ),
                )
            )

        entries.sort(key=lambda entry: (entry[0], entry[1], isinstance(entry[2], ast.ImportFrom)))
        return [statement for _, _, statement in entries]

    def get_modules(self) -> set[str]:
        """Get the set of all modules that have been imported."""
        return set(self._imports) | self._modules
