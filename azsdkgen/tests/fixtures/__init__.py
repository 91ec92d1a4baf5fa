"""Test fixtures for azsdkgen tests.

This module provides small specification corpora, laid out the way
azure-rest-api-specs lays them out, and a helper that writes them to disk.
Each corpus maps a path (relative to the directory it is written into) to a
Swagger 2.0 document.
"""

import json
from pathlib import Path


def swagger(
    paths: dict | None = None,
    definitions: dict | None = None,
    parameters: dict | None = None,
    title: str = 'Test API',
) -> dict:
    """Build a minimal Swagger 2.0 document."""
    document = {
        'swagger': '2.0',
        'info': {'title': title, 'version': '1.0'},
        'paths': paths or {},
    }
    if definitions is not None:
        document['definitions'] = definitions
    if parameters is not None:
        document['parameters'] = parameters
    return document


def get_operation(
    operation_id: str,
    response_ref: str | None = None,
    parameters: list | None = None,
    **extra,
) -> dict:
    """Build a GET operation whose 200 response points at ``response_ref``."""
    responses = {'200': {'description': 'OK'}}
    if response_ref is not None:
        responses['200']['schema'] = {'$ref': response_ref}
    return {
        'operationId': operation_id,
        'parameters': parameters or [],
        'responses': responses,
        **extra,
    }


def write_corpus(root: Path, corpus: dict[str, dict | str]) -> Path:
    """Write ``corpus`` below ``root`` and return ``root``.

    String values are written verbatim, which allows broken files.
    """
    for relative, document in corpus.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(document, str):
            path.write_text(document, encoding='utf-8')
        else:
            path.write_text(json.dumps(document, indent=2), encoding='utf-8')
    return root


# The end-to-end scenario: User -> UserProfile -> allOf BaseProfile
END_TO_END_CORPUS = {
    'user.json': swagger(
        paths={
            '/users/{userId}': {
                'get': get_operation(
                    'Users_Get',
                    '#/definitions/User',
                    parameters=[
                        {'name': 'userId', 'in': 'path', 'required': True, 'type': 'string'}
                    ],
                )
            }
        },
        definitions={
            'User': {
                'type': 'object',
                'properties': {
                    'id': {'type': 'string'},
                    'email': {'type': 'string'},
                    'profile': {'$ref': './profile.json#/definitions/UserProfile'},
                },
            }
        },
    ),
    'profile.json': swagger(
        definitions={
            'UserProfile': {
                'allOf': [
                    {'$ref': './common.json#/definitions/BaseProfile'},
                    {'properties': {'avatarUrl': {'type': 'string'}}},
                ]
            }
        }
    ),
    'common.json': swagger(
        definitions={
            'BaseProfile': {
                'type': 'object',
                'properties': {
                    'id': {'type': 'string'},
                    'createdAt': {'type': 'string', 'format': 'date-time'},
                    'updatedAt': {'type': 'string', 'format': 'date-time'},
                },
            }
        }
    ),
}


# An Azure-style tree. ``specification`` is the corpus root; the shared
# common types live next to it and are only reachable through $ref.
COMMON_TYPES = '../../../../common-types/v1/types.json'
USERS_FILE = 'users/stable/2024-01-01/users.json'
PROFILE_FILE = 'users/stable/2024-01-01/profile.json'

AZURE_CORPUS = {
    'common-types/v1/types.json': swagger(
        parameters={
            'SubscriptionIdParameter': {
                'name': 'subscriptionId',
                'in': 'path',
                'required': True,
                'type': 'string',
                'description': 'The ID of the target subscription.',
            },
            'ApiVersionParameter': {
                'name': 'api-version',
                'in': 'query',
                'required': True,
                'type': 'string',
                'description': 'The API version to use for this operation.',
            },
        },
        definitions={
            'Resource': {
                'description': 'Common fields returned for all Azure resources.',
                'properties': {
                    'id': {'type': 'string', 'readOnly': True},
                    'name': {'type': 'string', 'readOnly': True},
                    'type': {'type': 'string', 'readOnly': True},
                },
            },
            'ErrorResponse': {
                'properties': {
                    'error': {
                        'type': 'object',
                        'properties': {
                            'code': {'type': 'string'},
                            'message': {'type': 'string'},
                        },
                    }
                }
            },
        },
    ),
    f'specification/{USERS_FILE}': swagger(
        paths={
            '/subscriptions/{subscriptionId}/users/{userName}': {
                'parameters': [
                    {'$ref': f'{COMMON_TYPES}#/parameters/SubscriptionIdParameter'}
                ],
                'get': {
                    'operationId': 'Users_Get',
                    'description': 'Gets a user.',
                    'parameters': [
                        {
                            'name': 'userName',
                            'in': 'path',
                            'required': True,
                            'type': 'string',
                            'description': 'The name of the user.',
                        },
                        {'$ref': f'{COMMON_TYPES}#/parameters/ApiVersionParameter'},
                        {
                            'name': '$expand',
                            'in': 'query',
                            'required': False,
                            'type': 'string',
                            'description': 'Expands referenced resources.',
                        },
                    ],
                    'responses': {
                        '200': {
                            'description': 'OK',
                            'schema': {'$ref': '#/definitions/User'},
                        },
                        'default': {
                            'description': 'Error',
                            'schema': {'$ref': f'{COMMON_TYPES}#/definitions/ErrorResponse'},
                        },
                    },
                },
                'delete': {
                    'operationId': 'Users_Delete',
                    'parameters': [
                        {'name': 'userName', 'in': 'path', 'required': True, 'type': 'string'}
                    ],
                    'responses': {'200': {'description': 'OK'}},
                },
            },
            '/subscriptions/{subscriptionId}/users': {
                'get': {
                    'operationId': 'Users_List',
                    'summary': 'Lists users.',
                    'parameters': [
                        {'$ref': f'{COMMON_TYPES}#/parameters/SubscriptionIdParameter'},
                        {'$ref': f'{COMMON_TYPES}#/parameters/ApiVersionParameter'},
                        {
                            'name': '$top',
                            'in': 'query',
                            'type': 'integer',
                            'format': 'int32',
                        },
                        {
                            'name': 'tags',
                            'in': 'query',
                            'type': 'array',
                            'items': {'type': 'string'},
                        },
                        {'$ref': './shared-parameters.json#/parameters/SkipToken'},
                    ],
                    'responses': {
                        '200': {
                            'description': 'OK',
                            'schema': {'$ref': '#/definitions/UserListResult'},
                        }
                    },
                },
            },
            '/subscriptions/{subscriptionId}/userNames': {
                'get': get_operation(
                    'UserNames_List',
                    '#/definitions/UserNameList',
                    parameters=[
                        {'$ref': f'{COMMON_TYPES}#/parameters/SubscriptionIdParameter'},
                    ],
                )
            },
        },
        definitions={
            'User': {
                'description': 'A user account.',
                'allOf': [{'$ref': f'{COMMON_TYPES}#/definitions/Resource'}],
                'properties': {
                    'email': {'type': 'string'},
                    'profile': {'$ref': './profile.json#/definitions/UserProfile'},
                    'status': {
                        'type': 'string',
                        'enum': ['Active', 'Disabled'],
                        'x-ms-enum': {'name': 'UserStatus', 'modelAsString': True},
                    },
                    'tags': {'type': 'object', 'additionalProperties': {'type': 'string'}},
                    'class': {'type': 'string'},
                    'created-at': {'type': 'string', 'format': 'date-time'},
                },
                'required': ['email'],
            },
            'UserListResult': {
                'properties': {
                    'value': {'type': 'array', 'items': {'$ref': '#/definitions/User'}},
                    'nextLink': {'type': 'string'},
                }
            },
            'UserNameList': {'type': 'array', 'items': {'type': 'string'}},
        },
    ),
    f'specification/{PROFILE_FILE}': swagger(
        definitions={
            'UserProfile': {
                'properties': {
                    'displayName': {'type': 'string'},
                    'owner': {'$ref': './users.json#/definitions/User'},
                    'tier': {'$ref': '#/definitions/Tier'},
                }
            },
            'Tier': {
                'type': 'string',
                'enum': ['Free', 'Premium'],
                'x-ms-enum': {'name': 'Tier', 'modelAsString': True},
            },
        }
    ),
    # A newer preview declares the same operation; the stable one must win.
    'specification/users/preview/2024-06-01-preview/users.json': swagger(
        paths={
            '/subscriptions/{subscriptionId}/users/{userName}': {
                'get': {
                    'operationId': 'Users_Get',
                    'responses': {'200': {'description': 'OK', 'schema': {'type': 'string'}}},
                }
            }
        }
    ),
    # Never indexed
    'specification/users/stable/2024-01-01/examples/Users_Get.json': {
        'parameters': {'userName': 'jane'},
        'definitions': {'ExampleOnly': {'type': 'object'}},
    },
    'specification/package.json': {'name': 'azure-rest-api-specs'},
}


# Same bare name in two files plus one unique name
DUPLICATES_CORPUS = {
    'a.json': swagger(
        definitions={'Resource': {'properties': {'id': {'type': 'string'}}}}
    ),
    'b.json': swagger(
        definitions={'Resource': {'properties': {'name': {'type': 'string'}}}}
    ),
    'c.json': swagger(
        definitions={'UniqueThing': {'properties': {'value': {'type': 'integer'}}}}
    ),
}


# A duplicate name returned by an operation: the newest dated file wins
SKU_CORPUS = {
    'compute/stable/2023-01-01/compute.json': swagger(
        paths={'/skus/{name}': {'get': get_operation('Skus_Get', '#/definitions/Sku')}},
        definitions={'Sku': {'properties': {'name': {'type': 'string'}}}},
    ),
    'storage/stable/2024-01-01/storage.json': swagger(
        definitions={
            'Sku': {
                'properties': {
                    'name': {'type': 'string'},
                    'tier': {'type': 'string'},
                }
            }
        },
    ),
}


INHERITANCE_CORPUS = {
    'inherit.json': swagger(
        definitions={
            'Base': {'properties': {'y': {'type': 'integer'}}},
            'Child': {
                'allOf': [
                    {'$ref': '#/definitions/Base'},
                    {'properties': {'x': {'type': 'string'}}},
                ],
                'properties': {'y': {'type': 'string'}},
            },
            'SelfRef': {
                'allOf': [{'$ref': '#/definitions/SelfRef'}],
                'properties': {'a': {'type': 'string'}},
            },
            'Ping': {
                'allOf': [{'$ref': '#/definitions/Pong'}],
                'properties': {'ping': {'type': 'string'}},
            },
            'Pong': {
                'allOf': [{'$ref': '#/definitions/Ping'}],
                'properties': {'pong': {'type': 'string'}},
            },
            'Derived': {
                'allOf': [{'$ref': './base/stable/2024-01-01/base.json#/definitions/Tracked'}],
                'properties': {'extra': {'type': 'boolean'}},
            },
        }
    ),
    'base/stable/2024-01-01/base.json': swagger(
        definitions={
            'Tracked': {
                'allOf': [{'$ref': '#/definitions/Root'}],
                'properties': {
                    'location': {'type': 'string'},
                    'root': {'$ref': '#/definitions/Root'},
                },
            },
            'Root': {'properties': {'id': {'type': 'string'}}},
        }
    ),
}


BROKEN_REFERENCES_CORPUS = {
    'broken.json': swagger(
        definitions={
            'Dangling': {'properties': {'other': {'$ref': '#/definitions/Missing'}}},
            'Remote': {
                'properties': {
                    'x': {'$ref': 'https://example.com/schemas.json#/definitions/X'}
                }
            },
        }
    ),
}


# Same basename in two versions; references fall back to the newest stable one
BASENAME_CORPUS = {
    'service/stable/2024-01-01/api.json': swagger(
        definitions={
            'Widget': {'properties': {'base': {'$ref': './types.json#/definitions/Shared'}}}
        }
    ),
    'shared/stable/2023-01-01/types.json': swagger(
        definitions={'Shared': {'properties': {'stable': {'type': 'string'}}}}
    ),
    'shared/preview/2024-01-01-preview/types.json': swagger(
        definitions={'Shared': {'properties': {'preview': {'type': 'string'}}}}
    ),
}


# Two independent trees under one root, each with its own parameter files
MULTI_ROOT_CORPUS = {
    'tree-a/service/stable/2024-01-01/a.json': swagger(
        paths={
            '/a/{region}': {
                'get': get_operation(
                    'Alpha_Get',
                    parameters=[{'$ref': '../../../shared/params.json#/parameters/Region'}],
                )
            }
        }
    ),
    'tree-b/service/b.json': swagger(
        paths={
            '/b/{region}': {
                'get': get_operation(
                    'Beta_Get',
                    parameters=[{'$ref': '../params.json#/parameters/Region'}],
                )
            }
        }
    ),
    'tree-a/shared/params.json': swagger(
        parameters={'Region': {'$ref': './nested/base.json#/parameters/RegionBase'}}
    ),
    'tree-a/shared/nested/base.json': swagger(
        parameters={
            'RegionBase': {
                'name': 'region',
                'in': 'path',
                'required': True,
                'type': 'string',
                'description': 'Region of tree A.',
            }
        }
    ),
    'tree-b/params.json': swagger(
        parameters={
            'Region': {
                'name': 'region',
                'in': 'path',
                'required': True,
                'type': 'string',
                'description': 'Region of tree B.',
            }
        }
    ),
}


# Property names that collide with generated type names, pydantic helpers
# and the builtins generated annotations use
SHADOWING_CORPUS = {
    'things.json': swagger(
        paths={
            '/things/{name}': {
                'get': get_operation(
                    'Things_Get',
                    '#/definitions/Thing',
                    parameters=[
                        {'name': 'name', 'in': 'path', 'required': True, 'type': 'string'}
                    ],
                )
            }
        },
        definitions={
            'Thing': {
                'properties': {
                    'Sku': {'$ref': '#/definitions/Sku'},
                    'Field': {'type': 'string'},
                    'BaseModel': {'type': 'string'},
                    'ConfigDict': {'type': 'string'},
                    'str': {'type': 'string'},
                    'int': {'type': 'integer'},
                    'schema': {'type': 'string'},
                    'default-value': {'type': 'string'},
                    'labels': {'type': 'object', 'additionalProperties': {'type': 'string'}},
                }
            },
            'Sku': {
                'properties': {
                    'name': {'type': 'string'},
                    'Thing': {'$ref': '#/definitions/Thing'},
                }
            },
        },
    ),
}


def _service(operation_id: str, path: str, name: str, properties: dict) -> dict:
    return swagger(
        paths={
            path: {
                'get': get_operation(
                    operation_id,
                    f'#/definitions/{name}',
                    parameters=[
                        {'name': 'name', 'in': 'path', 'required': True, 'type': 'string'}
                    ],
                )
            }
        },
        definitions={name: {'properties': properties}},
    )


# Three sibling service roots whose files share relative paths; runs pass
# some of them as separate corpus roots
SERVICE_ROOTS_CORPUS = {
    'network/stable/2024-01-01/api.json': _service(
        'Networks_Get',
        '/networks/{name}',
        'Network',
        {'id': {'type': 'string'}, 'prefixes': {'type': 'array', 'items': {'type': 'string'}}},
    ),
    'compute/stable/2024-01-01/api.json': _service(
        'Machines_Get',
        '/machines/{name}',
        'Machine',
        {'id': {'type': 'string'}, 'cores': {'type': 'integer'}},
    ),
    'storage/stable/2024-01-01/api.json': _service(
        'Accounts_Get',
        '/accounts/{name}',
        'Account',
        {'id': {'type': 'string'}},
    ),
}
