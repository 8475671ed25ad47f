'''Numeric weight backends that all counting methods are generic over.

Vote counts, scores, quotas and transferred vote values are all *weights*.
A weight backend defines the arithmetic contract of the weight domain:

-   ``zero()`` and ``one()``, the identities, and ``from_int(n)``,
-   ``add(a, b)`` and ``subtract(a, b)``,
-   ``compare(a, b)`` returning -1, 0 or 1,
-   ``scale(a, numerator, denominator)`` computing ``a * num / den``,
    exactly or approximated within the domain,
-   ``floor(a)``, used by the Droop quota,
-   ``coerce(value)`` converting a caller-supplied value into the domain.

Counting algorithms use only these operations and never the native operators
of the weight values, so the same count runs over integers, floats,
fractions or fixed-point decimals. They do not branch on which backend is in
use, only on its declared capabilities: ``exact`` (addition is associative
bit for bit, so partial totals can be merged safely) and ``divisible``
(fractional weights are representable).

The backends available by name are assembled in the `BACKENDS` dictionary;
:func:`construct` retrieves from it by string key and checks backend objects
supplied by the caller.
'''

import abc
import math
import decimal
import functools
import numbers
from decimal import Decimal
from fractions import Fraction
from typing import Any, Callable, Dict, Iterable, Union

from votetally.errors import ArithmeticContractViolation, InvalidConfiguration
from votetally.persist import simple_serialization


Weight = Any

REQUIRED_OPERATIONS = (
    'zero', 'one', 'from_int', 'add', 'subtract',
    'compare', 'scale', 'floor', 'coerce',
)


class WeightBackend(metaclass=abc.ABCMeta):
    '''An abstract base class for weight backends.

    Subclasses implement the arithmetic contract; the helpers defined here
    are built purely on top of it.
    '''
    name: str = NotImplemented
    exact: bool = False
    divisible: bool = False

    @abc.abstractmethod
    def zero(self) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def one(self) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def from_int(self, n: int) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def add(self, a: Weight, b: Weight) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def subtract(self, a: Weight, b: Weight) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def compare(self, a: Weight, b: Weight) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def floor(self, a: Weight) -> Weight:
        raise NotImplementedError

    @abc.abstractmethod
    def coerce(self, value: Any) -> Weight:
        '''Convert a caller-supplied value into the weight domain.

        :raises ArithmeticContractViolation: If the value cannot be
            represented in the domain.
        '''
        raise NotImplementedError

    def scale(self,
              a: Weight,
              numerator: Union[Weight, int],
              denominator: Union[Weight, int],
              ) -> Weight:
        '''Return ``a * numerator / denominator`` within the domain.

        :raises ArithmeticContractViolation: If the denominator is not
            positive.
        '''
        if self.compare(denominator, self.zero()) <= 0:
            raise ArithmeticContractViolation(
                f'{self.name} backend: cannot scale by {numerator!r}'
                f' / {denominator!r}, denominator must be positive'
            )
        return self._scale(a, numerator, denominator)

    @abc.abstractmethod
    def _scale(self, a, numerator, denominator) -> Weight:
        raise NotImplementedError

    def sum(self, values: Iterable[Weight]) -> Weight:
        return functools.reduce(self.add, values, self.zero())

    def max(self, values: Iterable[Weight]) -> Weight:
        return functools.reduce(
            lambda a, b: b if self.compare(b, a) > 0 else a, values
        )

    def min(self, values: Iterable[Weight]) -> Weight:
        return functools.reduce(
            lambda a, b: b if self.compare(b, a) < 0 else a, values
        )

    def is_zero(self, a: Weight) -> bool:
        return self.compare(a, self.zero()) == 0

    def is_positive(self, a: Weight) -> bool:
        return self.compare(a, self.zero()) > 0

    @property
    def sort_key(self) -> Callable[[Weight], Any]:
        '''A key function ordering weights by :meth:`compare`.'''
        return functools.cmp_to_key(self.compare)


class _NativeBackend(WeightBackend):
    # Shared implementation for backends whose values support the Python
    # numeric protocol.
    def add(self, a: Weight, b: Weight) -> Weight:
        return a + b

    def subtract(self, a: Weight, b: Weight) -> Weight:
        return a - b

    def compare(self, a: Weight, b: Weight) -> int:
        return (a > b) - (a < b)


@simple_serialization
class IntegerBackend(_NativeBackend):
    '''Integer weights. Scaling rounds down (towards negative infinity).'''
    name = 'integer'
    exact = True
    divisible = False

    def zero(self) -> int:
        return 0

    def one(self) -> int:
        return 1

    def from_int(self, n: int) -> int:
        return int(n)

    def floor(self, a: int) -> int:
        return a

    def coerce(self, value: Any) -> int:
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            if value == int(value):
                return int(value)
        raise ArithmeticContractViolation(
            f'{value!r} is not representable as an integer weight'
        )

    def _scale(self, a: int, numerator: int, denominator: int) -> int:
        return (a * numerator) // denominator


@simple_serialization
class FloatBackend(_NativeBackend):
    '''Floating-point weights.

    Float addition is not associative, so the backend is not ``exact``:
    accumulation is never split across workers with it.
    '''
    name = 'float'
    exact = False
    divisible = True

    def zero(self) -> float:
        return 0.0

    def one(self) -> float:
        return 1.0

    def from_int(self, n: int) -> float:
        return float(n)

    def floor(self, a: float) -> float:
        return float(math.floor(a))

    def coerce(self, value: Any) -> float:
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            coerced = float(value)
            if math.isfinite(coerced):
                return coerced
        raise ArithmeticContractViolation(
            f'{value!r} is not representable as a float weight'
        )

    def _scale(self, a: float, numerator, denominator) -> float:
        return a * numerator / denominator


@simple_serialization
class FractionBackend(_NativeBackend):
    '''Exact rational weights using :class:`fractions.Fraction`.'''
    name = 'fraction'
    exact = True
    divisible = True

    def zero(self) -> Fraction:
        return Fraction(0)

    def one(self) -> Fraction:
        return Fraction(1)

    def from_int(self, n: int) -> Fraction:
        return Fraction(n)

    def floor(self, a: Fraction) -> Fraction:
        return Fraction(math.floor(a))

    def coerce(self, value: Any) -> Fraction:
        if isinstance(value, (numbers.Rational, Decimal)):
            return Fraction(value)
        elif isinstance(value, float) and math.isfinite(value):
            return Fraction(value)
        raise ArithmeticContractViolation(
            f'{value!r} is not representable as a rational weight'
        )

    def _scale(self, a: Fraction, numerator, denominator) -> Fraction:
        return Fraction(a) * numerator / denominator


@simple_serialization
class FixedPointBackend(_NativeBackend):
    '''Fixed-point decimal weights with a given number of decimal places.

    Sums of fixed-point values are exact; scaling is quantized back to the
    given number of places using the rounding mode, which defaults to
    rounding down so that transfers never exceed the amount transferred
    from. Computations run in a local decimal context with the given
    precision.

    :param places: Number of decimal places kept.
    :param rounding: A :mod:`decimal` rounding mode for scaling.
    :param precision: Significant digits of the computation context.
    '''
    name = 'fixed'
    exact = True
    divisible = True

    def __init__(self,
                 places: int = 4,
                 rounding: str = decimal.ROUND_DOWN,
                 precision: int = 60,
                 ):
        if places < 0:
            raise InvalidConfiguration(f'invalid decimal places: {places}')
        self.places = places
        self.rounding = rounding
        self.precision = precision
        self._quantum = Decimal(1).scaleb(-places)

    def _context(self) -> decimal.Context:
        return decimal.Context(prec=self.precision, rounding=self.rounding)

    def _quantize(self, value: Decimal) -> Decimal:
        return value.quantize(self._quantum, context=self._context())

    def zero(self) -> Decimal:
        return self._quantize(Decimal(0))

    def one(self) -> Decimal:
        return self._quantize(Decimal(1))

    def from_int(self, n: int) -> Decimal:
        return self._quantize(Decimal(n))

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        return self._context().add(a, b)

    def subtract(self, a: Decimal, b: Decimal) -> Decimal:
        return self._context().subtract(a, b)

    def floor(self, a: Decimal) -> Decimal:
        return self._quantize(
            a.to_integral_value(rounding=decimal.ROUND_FLOOR)
        )

    def coerce(self, value: Any) -> Decimal:
        if isinstance(value, float):
            value = Decimal(repr(value))
        if isinstance(value, Fraction):
            exact = Decimal(value.numerator) / Decimal(value.denominator)
        elif isinstance(value, (numbers.Integral, Decimal)):
            exact = Decimal(value)
        else:
            exact = None
        if exact is not None and exact.is_finite():
            quantized = self._quantize(exact)
            if quantized == exact and Fraction(quantized) == Fraction(value):
                return quantized
        raise ArithmeticContractViolation(
            f'{value!r} is not representable as a fixed-point weight'
            f' with {self.places} places'
        )

    def _scale(self, a: Decimal, numerator, denominator) -> Decimal:
        ctx = self._context()
        product = ctx.multiply(a, Decimal(numerator))
        return self._quantize(ctx.divide(product, Decimal(denominator)))


@simple_serialization
class BackendAdapter(WeightBackend):
    '''Wrap a duck-typed backend object to provide the derived helpers.

    The adapter serializes the wrapped object, so it can only be rebuilt by
    :func:`votetally.persist.from_dict` if that object is serializable
    itself and its class comes from the votetally package.

    :param inner: An object providing all of :data:`REQUIRED_OPERATIONS`.
    '''
    def __init__(self, inner: Any):
        self.inner = inner
        self.name = getattr(inner, 'name', type(inner).__name__)
        self.exact = bool(getattr(inner, 'exact', False))
        self.divisible = bool(getattr(inner, 'divisible', False))

    def zero(self):
        return self.inner.zero()

    def one(self):
        return self.inner.one()

    def from_int(self, n):
        return self.inner.from_int(n)

    def add(self, a, b):
        return self.inner.add(a, b)

    def subtract(self, a, b):
        return self.inner.subtract(a, b)

    def compare(self, a, b):
        return self.inner.compare(a, b)

    def floor(self, a):
        return self.inner.floor(a)

    def coerce(self, value):
        return self.inner.coerce(value)

    def _scale(self, a, numerator, denominator):
        return self.inner.scale(a, numerator, denominator)


BACKENDS: Dict[str, type] = {
    'integer': IntegerBackend,
    'float': FloatBackend,
    'fraction': FractionBackend,
    'rational': FractionBackend,
    'fixed': FixedPointBackend,
}


def get(name: str) -> WeightBackend:
    '''Return a default-configured weight backend by its name.'''
    try:
        return BACKENDS[name]()
    except (KeyError, TypeError):
        raise InvalidConfiguration(f'unknown weight backend: {name!r}')


def construct(backend_def: Union[str, WeightBackend, Any]) -> WeightBackend:
    '''Construct a weight backend, checking that it fulfils the contract.

    :param backend_def: A backend name from `BACKENDS`, a
        :class:`WeightBackend` instance, or any object providing all of the
        contract operations (which will be wrapped in
        :class:`BackendAdapter`).
    :raises InvalidConfiguration: If the backend is unknown or incomplete.
    '''
    if isinstance(backend_def, str):
        return get(backend_def)
    elif isinstance(backend_def, WeightBackend):
        return backend_def
    elif backend_def is None:
        raise InvalidConfiguration('no weight backend given')
    missing = [
        op for op in REQUIRED_OPERATIONS
        if not callable(getattr(backend_def, op, None))
    ]
    if missing:
        raise InvalidConfiguration(
            f'{backend_def!r} is not a weight backend,'
            f' missing operations: {", ".join(missing)}'
        )
    return BackendAdapter(backend_def)
