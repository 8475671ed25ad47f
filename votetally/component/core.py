'''Named-function registries for components.

Components that come as plain functions (quotas, pairwise win scorers) are
collected in a module-level dictionary by name. :func:`register_functions`
builds the three helpers each such module exposes: a decorator adding
a function to the registry, a lookup by name, and a constructor that also
accepts a custom callable.
'''

from typing import Any, Callable, Dict, Tuple

from votetally.errors import InvalidConfiguration


def register_functions(register: Dict[str, Callable],
                       kind: str,
                       signature: Any = Callable,
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Build the marker, getter and constructor for a function registry.

    :param register: The dictionary to hold the named functions.
    :param kind: Human-readable name of the component kind, used in error
        messages.
    :param signature: The type of the registered functions, for
        annotations only.
    '''
    def mark(func: signature) -> signature:
        if func.__name__ in register:
            raise InvalidConfiguration(
                f'{kind} {func.__name__!r} registered twice'
            )
        register[func.__name__] = func
        return func

    def get(name: str) -> signature:
        if isinstance(name, str) and name in register:
            return register[name]
        raise InvalidConfiguration(
            f'unknown {kind}: {name!r}, expected one of'
            f' {", ".join(sorted(register))}'
        )

    def construct(func_def: Any) -> signature:
        return func_def if callable(func_def) else get(func_def)

    get.__doc__ = f'Return a {kind} function by its name.'
    construct.__doc__ = (
        f'Return a {kind} function by its name, or pass a custom callable'
        ' through unchanged.'
    )
    return mark, get, construct
