import numbers
import operator

import numpy as np

from bf16.floats import (
    BF16_BITS_MASK,
    BF16_SIGN_MASK,
    BF16_SIZE,
    FloatCategory,
    bf16_to_float,
    classify_bits,
    float_to_bf16,
)

__all__ = ["BFloat16", "from_bits", "to_bits", "from_f32", "from_int", "to_f32"]


class BFloat16:
    """
    16-bit float holding the upper half of an IEEE-754 float32.

    Same exponent range as float32, 7 explicit mantissa bits. Every bit
    pattern is a valid value. Instances are immutable. Addition goes through
    float32; comparisons widen the value and compare it with the other
    operand as is, so real numbers are never rounded to bfloat16 first.

    Construction from a number narrows it (see ``floats.float_to_bf16``):
    the result is rounded to nearest even, subnormals are flushed to a signed
    zero and signaling NaNs become quiet NaNs. Use ``from_bits`` to wrap a
    raw pattern unchanged.
    """

    __slots__ = ("_raw_bits",)

    def __init__(self, value=0.0):
        self._raw_bits = float_to_bf16(value)

    @classmethod
    def from_bits(cls, raw: int) -> "BFloat16":
        obj = cls.__new__(cls)
        obj._raw_bits = operator.index(raw) & BF16_BITS_MASK
        return obj

    @classmethod
    def from_f32(cls, f) -> "BFloat16":
        return cls.from_bits(float_to_bf16(f))

    @classmethod
    def frombytes(cls, buf: bytes) -> "BFloat16":
        """Read a value stored in host byte order."""
        if len(buf) != BF16_SIZE:
            raise ValueError(f"BFloat16 needs exactly {BF16_SIZE} bytes, got {len(buf)}")
        return cls.from_bits(int(np.frombuffer(buf, dtype=np.uint16)[0]))

    def to_bits(self) -> int:
        return self._raw_bits

    def to_f32(self) -> np.float32:
        return bf16_to_float(self._raw_bits)

    def tobytes(self) -> bytes:
        return np.uint16(self._raw_bits).tobytes()

    @property
    def category(self) -> FloatCategory:
        return classify_bits(self._raw_bits << 16)

    @property
    def signbit(self) -> bool:
        return bool(self._raw_bits & BF16_SIGN_MASK)

    def isnan(self) -> bool:
        return self.category == FloatCategory.NAN

    def isinf(self) -> bool:
        return self.category == FloatCategory.INFINITE

    def isfinite(self) -> bool:
        return self.category not in (FloatCategory.NAN, FloatCategory.INFINITE)

    def __float__(self) -> float:
        return float(self.to_f32())

    def __bool__(self) -> bool:
        return self.category != FloatCategory.ZERO

    def __repr__(self) -> str:
        return f"BFloat16({float(self)!r}, bits=0x{self._raw_bits:04x})"

    def __str__(self) -> str:
        return str(float(self))

    def __hash__(self) -> int:
        # NaN floats hash by identity; keep NaN hashes tied to the bit pattern
        if self.isnan():
            return hash(self._raw_bits)
        return hash(float(self))

    def __add__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        with np.errstate(over='ignore', invalid='ignore'):
            total = self.to_f32() + other.to_f32()
        return BFloat16.from_f32(total)

    __radd__ = __add__

    def _compare(self, other, op):
        """Compare the widened value against another BFloat16 or, unrounded, a real number."""
        if isinstance(other, BFloat16):
            other = float(other)
        elif isinstance(other, (np.floating, np.integer)):
            other = other.item()
        elif not isinstance(other, numbers.Real):
            return NotImplemented
        return op(float(self), other)

    def __eq__(self, other):
        return self._compare(other, operator.eq)

    def __ne__(self, other):
        return self._compare(other, operator.ne)

    def __lt__(self, other):
        return self._compare(other, operator.lt)

    def __le__(self, other):
        return self._compare(other, operator.le)

    def __gt__(self, other):
        return self._compare(other, operator.gt)

    def __ge__(self, other):
        return self._compare(other, operator.ge)


def _coerce(value):
    if isinstance(value, BFloat16):
        return value
    if isinstance(value, (numbers.Real, np.floating, np.integer)):
        return BFloat16.from_f32(value)
    return None


# Named limits. denorm_min widens to a subnormal but narrowing never produces it.
BFloat16.max = BFloat16.from_bits(0x7F7F)
BFloat16.lowest = BFloat16.from_bits(0xFF7F)
BFloat16.min = BFloat16.from_bits(0x0080)
BFloat16.epsilon = BFloat16.from_bits(0x3C00)
BFloat16.infinity = BFloat16.from_bits(0x7F80)
BFloat16.quiet_nan = BFloat16.from_bits(0x7FC0)
BFloat16.denorm_min = BFloat16.from_bits(0x0001)


def from_bits(raw: int) -> BFloat16:
    return BFloat16.from_bits(raw)


def to_bits(v: BFloat16) -> int:
    return v.to_bits()


def from_f32(f) -> BFloat16:
    """Narrow a float32 (or any real number, via float32) to bfloat16. Lossy."""
    return BFloat16.from_f32(f)


def from_int(i: int) -> BFloat16:
    return BFloat16.from_f32(operator.index(i))


def to_f32(v: BFloat16) -> np.float32:
    return v.to_f32()
