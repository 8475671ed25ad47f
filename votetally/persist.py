'''Serialization of votetally objects to JSON-ready dictionaries.

Evaluators, weight backends, tie-breakers and voting systems serialize to
a dictionary with a ``class`` key giving their qualified class name and one
key per constructor parameter, from which :func:`from_dict` rebuilds an
equivalent object. Components given as functions (such as quotas) serialize
to a ``callable`` reference. Results serialize one way only, for
presentation.

Weights and other non-JSON values are wrapped in a dictionary with a
``type`` key naming one of `VALUE_TYPES`. Sets (frozensets) are serialized
as sorted lists so that the output does not depend on hash order.

Only classes and functions from the votetally package are ever loaded when
deserializing.
'''

import sys
import enum
import inspect
import importlib
from fractions import Fraction
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Tuple


PACKAGE = __name__.split('.')[0]

ATOMIC_TYPES: Tuple[type, ...] = (str, int, float, bool, type(None))


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The resulting method will serialize all object attributes corresponding
    to the class's constructor parameter names, so the decorated class must
    store all its constructor arguments under the same names, in a form
    acceptable to the constructor.

    :param class_: The class to add the method to.
    '''
    param_names = [
        name
        for name, param in inspect.signature(
            class_.__init__
        ).parameters.items()
        if name != 'self' and param.kind not in (
            param.VAR_POSITIONAL, param.VAR_KEYWORD
        )
    ]

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': qualified_name(type(self))}
        for attr in param_names:
            out_dict[attr] = serialize_value(getattr(self, attr))
        return out_dict

    class_.to_dict = to_dict
    return class_


def sorted_items(items: Iterable[Any]) -> List[Any]:
    '''Sort set members for output, by value if possible, else by repr.'''
    items = list(items)
    try:
        return sorted(items)
    except TypeError:
        return sorted(items, key=repr)


def _encode_fraction(value: Fraction) -> Dict[str, Any]:
    return {'arguments': [value.numerator, value.denominator]}


def _encode_decimal(value: Decimal) -> Dict[str, Any]:
    return {'value': str(value)}


def _encode_frozenset(value: frozenset) -> Dict[str, Any]:
    return {'value': [serialize_value(item) for item in sorted_items(value)]}


def _encode_tuple(value: tuple) -> Dict[str, Any]:
    return {'value': [serialize_value(item) for item in value]}


def _encode_dict(value: Dict[Any, Any]) -> Dict[str, Any]:
    return {
        'keys': [serialize_value(key) for key in value.keys()],
        'values': [serialize_value(val) for val in value.values()],
    }


def _decode_dict(typedef: Dict[str, Any]) -> Dict[Any, Any]:
    return dict(zip(
        [_hashable(deserialize_value(key)) for key in typedef['keys']],
        [deserialize_value(val) for val in typedef['values']],
    ))


def _hashable(value: Any) -> Any:
    return tuple(value) if isinstance(value, list) else value


# type name: (python type, encoder, decoder of the encoded dictionary)
VALUE_TYPES: Dict[str, Tuple[type, Callable, Callable]] = {
    'Fraction': (
        Fraction, _encode_fraction,
        lambda typedef: Fraction(*typedef['arguments']),
    ),
    'Decimal': (
        Decimal, _encode_decimal,
        lambda typedef: Decimal(typedef['value']),
    ),
    'frozenset': (
        frozenset, _encode_frozenset,
        lambda typedef: frozenset(
            _hashable(deserialize_value(item)) for item in typedef['value']
        ),
    ),
    'tuple': (
        tuple, _encode_tuple,
        lambda typedef: tuple(
            deserialize_value(item) for item in typedef['value']
        ),
    ),
    'dict': (dict, _encode_dict, _decode_dict),
}


def _value_type(value: Any) -> Any:
    # Mappings are only typed when their keys are not all strings.
    for name, (type_, encoder, decoder) in VALUE_TYPES.items():
        if type_ is not dict and isinstance(value, type_):
            return name
    return None


def serialize_value(value: Any) -> Any:
    '''Convert a value to a JSON-ready form.

    :raises ValueError: If the value cannot be serialized.
    '''
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, enum.Enum):
        return serialize_value(value.value)
    elif isinstance(value, ATOMIC_TYPES):
        return value
    type_name = _value_type(value)
    if type_name is not None:
        encoded = VALUE_TYPES[type_name][1](value)
        encoded['type'] = type_name
        return encoded
    elif hasattr(value, 'items') and hasattr(value, 'keys'):
        if all(isinstance(key, str) for key in value.keys()):
            return {key: serialize_value(val) for key, val in value.items()}
        else:
            return dict(_encode_dict(value), type='dict')
    elif hasattr(value, '__iter__'):
        return [serialize_value(item) for item in value]
    elif callable(value) and hasattr(value, '__qualname__'):
        return {'callable': qualified_name(value)}
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    '''Rebuild a value from its JSON-ready form.

    :raises ValueError: If the value is of an unknown form.
    '''
    if isinstance(value, ATOMIC_TYPES):
        return value
    elif isinstance(value, list):
        return [deserialize_value(item) for item in value]
    elif not isinstance(value, dict):
        raise ValueError(f'cannot deserialize {value!r}, type unknown')
    elif 'type' in value:
        try:
            decoder = VALUE_TYPES[value['type']][2]
        except (KeyError, TypeError):
            raise ValueError(f'unknown value type: {value["type"]!r}')
        try:
            return decoder(value)
        except (KeyError, TypeError) as err:
            raise ValueError(f'invalid typed value contents: {value!r}') \
                from err
    elif 'class' in value:
        cls = get_object(value['class'])
        params = {
            key: deserialize_value(val)
            for key, val in value.items() if key != 'class'
        }
        return cls(**params)
    elif 'callable' in value:
        return get_object(value['callable'])
    else:
        return {key: deserialize_value(val) for key, val in value.items()}


def get_object(identifier: str) -> Any:
    '''Load a votetally class or function by its qualified name.

    :raises ValueError: If the name is malformed, points outside the
        votetally package or does not exist.
    '''
    if not is_scoped_identifier(identifier) or '.' not in identifier:
        raise ValueError(f'invalid qualified name: {identifier!r}')
    module_name, name = identifier.rsplit('.', 1)
    if module_name.split('.')[0] != PACKAGE:
        raise ValueError(f'refusing to load {identifier!r}: not in {PACKAGE}')
    try:
        module = sys.modules.get(module_name) \
            or importlib.import_module(module_name)
        return getattr(module, name)
    except (ImportError, AttributeError) as err:
        raise ValueError(f'cannot load {identifier!r}') from err


def from_dict(value: Dict[str, Any]) -> Any:
    """Rebuild a votetally object from a JSON-like dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    :raises ValueError: If the dictionary does not describe a votetally
        object.
    """
    if not isinstance(value, dict):
        raise ValueError('invalid votetally object def: dict expected,'
                         f' got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid votetally object def: must have a class key')
    return deserialize_value(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize a votetally object to a JSON-ready dictionary.

    :param obj: An evaluator, weight backend, tie-breaker, voting system or
        result.
    """
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def qualified_name(obj: Any) -> str:
    return '.'.join((obj.__module__, obj.__qualname__))
