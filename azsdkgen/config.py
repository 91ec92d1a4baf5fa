import os
import re
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from azsdkgen.exceptions import ConfigurationError

DEFAULT_FILENAMES = ['azsdkgen.yaml', 'azsdkgen.yml']

DEFAULT_EXCLUDES = [
    '**/examples/**',
    '**/test/**',
    'package.json',
    'tsconfig.json',
    '**/readme*',
]

_DOTTED_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*')


class GeneratorConfig(BaseSettings):
    """Settings for one generation run.

    Values come from a config file (see ``get_config``), from environment
    variables prefixed with ``AZSDKGEN_`` and from command-line overrides.
    """

    model_config = SettingsConfigDict(env_prefix='AZSDKGEN_', extra='forbid')

    specs_dir: str = Field(
        'azure-rest-api-specs/specification',
        description='Root directory of the specification corpus.',
    )

    specs_dirs: list[str] = Field(
        default_factory=list,
        description='Several corpus roots indexed together; replaces specs_dir when set.',
    )

    output_dir: str = Field('generated', description='Directory generated code goes into.')

    package: str = Field(
        'azure_sdk',
        description='Dotted Python package of the generated client, created under output_dir.',
    )

    client_class_name: str = Field(
        'AzureClient', description='Name of the generated client class.'
    )

    operations: list[str] = Field(
        default_factory=list,
        description='Operation ids to generate; empty means every GET operation.',
    )

    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDES),
        description='fnmatch patterns of files that are never indexed.',
    )

    follow_external_refs: bool = Field(
        True,
        description='Whether to load files referenced from outside the corpus roots.',
    )

    generate_all_definitions: bool = Field(
        False,
        description='Generate every indexed definition, not only the reachable ones.',
    )

    @field_validator('package')
    @classmethod
    def _valid_package(cls, value: str) -> str:
        if not _DOTTED_IDENTIFIER.fullmatch(value):
            raise ValueError(f"'{value}' is not a valid dotted package name")
        return value

    @field_validator('client_class_name')
    @classmethod
    def _valid_class_name(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"'{value}' is not a valid class name")
        return value

    @property
    def spec_roots(self) -> list[str]:
        """The corpus roots to index, in order."""
        return list(self.specs_dirs) or [self.specs_dir]


def load_yaml(path: str | Path) -> dict:
    import yaml

    return yaml.load(Path(path).read_text(), Loader=yaml.FullLoader) or {}


def _validate(data: dict[str, Any], overrides: dict[str, Any], source: str | None) -> GeneratorConfig:
    values = {**data, **{k: v for k, v in overrides.items() if v is not None}}
    try:
        # the constructor (unlike model_validate) also reads AZSDKGEN_* variables
        return GeneratorConfig(**values)
    except ValidationError as e:
        error = e.errors()[0]
        field = '.'.join(str(part) for part in error['loc']) or None
        raise ConfigurationError(
            f'Invalid configuration: {error["msg"]}', config_path=source, field=field
        )


def get_config(path: str | None = None, **overrides: Any) -> GeneratorConfig:
    """Load configuration from a file, falling back to environment and defaults.

    Lookup order: the explicit ``path``; ``azsdkgen.yaml`` / ``azsdkgen.yml``
    in the current directory; ``[tool.azsdkgen]`` in ``pyproject.toml``.
    Keyword overrides that are not None win over file values.

    Raises:
        ConfigurationError: If ``path`` does not exist or a value is invalid.
    """
    if path:
        if not Path(path).exists():
            raise ConfigurationError('Configuration file not found', config_path=path)
        return _validate(load_yaml(path), overrides, path)

    cwd = os.getcwd()

    for filename in DEFAULT_FILENAMES:
        candidate = Path(cwd) / filename
        if candidate.exists():
            return _validate(load_yaml(candidate), overrides, str(candidate))

    pyproject_path = Path(cwd) / 'pyproject.toml'

    if pyproject_path.exists():
        import tomllib

        pyproject = tomllib.loads(pyproject_path.read_text())
        tools = pyproject.get('tool', {})

        if 'azsdkgen' in tools:
            return _validate(tools['azsdkgen'], overrides, str(pyproject_path))

    return _validate({}, overrides, None)
