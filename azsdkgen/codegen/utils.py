import keyword
import re
import unicodedata

__all__ = (
    'RESERVED_WORDS',
    'capitalize',
    'clean_enum_name',
    'enum_constant_name',
    'field_name',
    'file_prefix',
    'lower_first',
    'method_name',
    'parameter_name',
    'sanitize_identifier',
    'to_snake_case',
    'type_name',
    'unique_name',
)

# Keywords of the languages generated clients are commonly consumed from.
# Hand-picked alternatives first; every other keyword gets a 'Field' suffix.
_RESERVED_ALTERNATIVES = {
    'default': 'dflt',
    'interface': 'iface',
    'class': 'clazz',
    'package': 'pkg',
    'public': 'publicField',
    'private': 'privateField',
    'protected': 'protectedField',
    'enum': 'enumValue',
    'import': 'importField',
    'return': 'returnValue',
}

_JAVA_KEYWORDS = {
    'abstract', 'assert', 'boolean', 'break', 'byte', 'case', 'catch', 'char',
    'class', 'const', 'continue', 'default', 'do', 'double', 'else', 'enum',
    'extends', 'final', 'finally', 'float', 'for', 'goto', 'if', 'implements',
    'import', 'instanceof', 'int', 'interface', 'long', 'native', 'new',
    'package', 'private', 'protected', 'public', 'return', 'short', 'static',
    'strictfp', 'super', 'switch', 'synchronized', 'this', 'throw', 'throws',
    'transient', 'try', 'void', 'volatile', 'while', 'true', 'false', 'null',
}

_CSHARP_KEYWORDS = {
    'base', 'bool', 'checked', 'decimal', 'delegate', 'event', 'explicit',
    'extern', 'fixed', 'foreach', 'implicit', 'internal', 'lock', 'namespace',
    'object', 'operator', 'out', 'override', 'params', 'readonly', 'ref',
    'sbyte', 'sealed', 'sizeof', 'stackalloc', 'string', 'struct', 'typeof',
    'uint', 'ulong', 'unchecked', 'unsafe', 'ushort', 'using', 'virtual',
}

# Names pydantic reserves on BaseModel subclasses, and the BaseModel methods
# a field of the same name would shadow.
_MODEL_ATTRIBUTES = {
    'model_config', 'model_fields', 'model_extra', 'model_fields_set',
    'model_computed_fields', 'model_construct', 'model_copy', 'model_dump',
    'model_dump_json', 'model_json_schema', 'model_parametrized_name',
    'model_post_init', 'model_rebuild', 'model_validate', 'model_validate_json',
    'model_validate_strings', 'construct', 'copy', 'dict', 'from_orm', 'json',
    'parse_file', 'parse_obj', 'parse_raw', 'schema', 'schema_json',
    'update_forward_refs', 'validate',
}

# Names generated annotations use; class bodies must not rebind them.
_ANNOTATION_NAMES = {'str', 'int', 'float', 'bool', 'list', 'dict', 'Any'}

RESERVED_WORDS: dict[str, str] = {
    word: _RESERVED_ALTERNATIVES.get(word, f'{word}Field')
    for word in (
        set(keyword.kwlist)
        | _JAVA_KEYWORDS
        | _CSHARP_KEYWORDS
        | _MODEL_ATTRIBUTES
        | _ANNOTATION_NAMES
    )
}

_PARAMETER_RESERVED = set(keyword.kwlist) | _JAVA_KEYWORDS | _ANNOTATION_NAMES | {'self'}


def capitalize(input_string):
    if not input_string:
        return ''
    return input_string[0].upper() + input_string[1:]


def lower_first(input_string):
    if not input_string:
        return ''
    return input_string[0].lower() + input_string[1:]


def remove_accents(input_str):
    nfkd_form = unicodedata.normalize('NFKD', input_str)
    return ''.join(c for c in nfkd_form if not unicodedata.combining(c))


def sanitize_identifier(name: str) -> str:
    """Convert a string into a PascalCase class name.

    Characters outside ``[A-Za-z0-9_]`` are dropped and the pieces they
    separated are capitalized and joined, so 'TypeSpec.Http.OkResponse'
    becomes 'TypeSpecHttpOkResponse'.
    """
    if not name:
        return 'UnnamedType'

    parts = re.split(r'[^A-Za-z0-9_]+', remove_accents(name))
    sanitized = ''.join(capitalize(part) for part in parts if part)

    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized

    return sanitized or 'UnnamedType'


def file_prefix(source_file: str) -> str:
    """PascalCase prefix derived from a file's basename without '.json'.

    Example:
        >>> file_prefix('network/stable/2024-07-01/virtual-network.json')
        'VirtualNetwork'
    """
    stem = source_file.rsplit('/', 1)[-1]
    if stem.endswith('.json'):
        stem = stem[: -len('.json')]
    if re.fullmatch(r'[A-Z][A-Za-z0-9]*', stem):
        return stem
    return ''.join(capitalize(part) for part in re.split(r'[^A-Za-z0-9]+', stem) if part)


def type_name(bare_name: str, source_file: str, duplicates: set[str] | frozenset[str]) -> str:
    """Output type name for a definition.

    Names defined in more than one file are prefixed with the PascalCase
    basename of their file, so 'a.json#/definitions/Resource' and
    'b.json#/definitions/Resource' become 'AResource' and 'BResource'.
    """
    name = sanitize_identifier(bare_name)
    if bare_name in duplicates:
        name = sanitize_identifier(file_prefix(source_file) + name)
    return name


def field_name(wire_name: str) -> str:
    """Safe attribute name for a JSON property.

    kebab-case (and any other separator) becomes camelCase, and reserved
    words are mapped through RESERVED_WORDS:

        >>> field_name('default-value')
        'defaultValue'
        >>> field_name('class')
        'clazz'
    """
    text = remove_accents(wire_name)
    if re.search(r'[^A-Za-z0-9_]', text):
        parts = [part for part in re.split(r'[^A-Za-z0-9_]+', text) if part]
        text = lower_first(parts[0]) + ''.join(capitalize(p) for p in parts[1:]) if parts else ''

    # pydantic treats leading underscores as private attributes
    text = text.lstrip('_')
    if not text:
        return 'field'
    if text[0].isdigit():
        text = f'field{text}'
    return RESERVED_WORDS.get(text, text)


def clean_enum_name(name: str) -> str:
    """Trim an x-ms-enum name and turn inner whitespace into underscores."""
    return re.sub(r'\s+', '_', name.strip())


def enum_constant_name(value: str) -> str:
    """Constant name for an enum wire value.

    Example:
        >>> enum_constant_name('Standard_LRS')
        'STANDARD_LRS'
        >>> enum_constant_name('2019-01-01')
        '_2019_01_01'
    """
    name = re.sub(r'[^A-Za-z0-9]', '_', remove_accents(str(value)).upper())
    if not name.strip('_'):
        return 'UNKNOWN'
    if name[0].isdigit():
        name = '_' + name
    return name


def method_name(operation_id: str) -> str:
    """Client method name for an operationId.

    'Resource_Verb' becomes 'verbResource':

        >>> method_name('VirtualNetworkGateways_ListConnections')
        'listConnectionsVirtualNetworkGateways'
        >>> method_name('Users_List')
        'listUsers'
    """
    resource, separator, verb = operation_id.partition('_')
    if separator:
        name = lower_first(verb) + capitalize(resource)
    else:
        name = lower_first(operation_id)

    name = re.sub(r'[^A-Za-z0-9_]', '', remove_accents(name))
    if not name:
        return 'operation'
    if name[0].isdigit():
        name = f'op{name}'
    if keyword.iskeyword(name):
        name = f'{name}Operation'
    return name


def parameter_name(wire_name: str) -> str:
    """Valid identifier for a parameter's wire name.

    Example:
        >>> parameter_name('$filter')
        'filter'
        >>> parameter_name('resource-group')
        'resource_group'
    """
    name = wire_name.lstrip('$')
    name = re.sub(r'[^A-Za-z0-9_]', '_', remove_accents(name))
    if not name:
        return 'param'
    if name[0].isdigit():
        name = '_' + name
    if name in _PARAMETER_RESERVED:
        name = f'{name}Param'
    return name


def unique_name(name: str, used: set[str]) -> str:
    """Return ``name`` or the first of name2, name3, ... not in ``used``."""
    if name not in used:
        return name
    counter = 2
    while f'{name}{counter}' in used:
        counter += 1
    return f'{name}{counter}'


def to_snake_case(name: str) -> str:
    """Convert a PascalCase or camelCase name to snake_case.

    Example:
        >>> to_snake_case('UserProfileListResult')
        'user_profile_list_result'
    """
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    name = re.sub(r'[^A-Za-z0-9_]', '_', name).lower()
    name = re.sub(r'_+', '_', name).strip('_')
    if not name:
        return 'model'
    if name[0].isdigit():
        name = f'm_{name}'
    return name
