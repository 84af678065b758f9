import enum
import math
import numbers

import numpy as np

F32_EXP_MASK = 0x7F800000
F32_MANTISSA_MASK = 0x007FFFFF
F32_MANTISSA_BITS = 23

BF16_BITS_MASK = 0xFFFF
BF16_SIGN_MASK = 0x8000
BF16_MANTISSA_BITS = 7
BF16_QUIET_BIT = 1 << (BF16_MANTISSA_BITS - 1)
BF16_ROUNDING_BIAS = 0x7FFF

BF16_SIZE = np.dtype(np.uint16).itemsize


class FloatCategory(enum.IntEnum):
    """IEEE-754 categories, named after C's fpclassify results."""
    NAN = 0
    INFINITE = 1
    ZERO = 2
    SUBNORMAL = 3
    NORMAL = 4


def f32_to_bits(f) -> int:
    """Bit cast a float32 (or anything numpy narrows to one) to its uint32 pattern."""
    with np.errstate(over='ignore', invalid='ignore'):
        f32 = np.asarray(f, dtype=np.float32)
    return int(f32.view(np.uint32))


def bits_to_f32(bits: int) -> np.float32:
    # Stay in numpy so signaling NaN payloads are not quieted by a double conversion
    u32 = np.asarray(bits & 0xFFFFFFFF, dtype=np.uint32)
    return u32.view(np.float32)[()]


def classify_bits(f32_bits: int) -> FloatCategory:
    exponent = (f32_bits & F32_EXP_MASK) >> F32_MANTISSA_BITS
    mantissa = f32_bits & F32_MANTISSA_MASK

    if exponent == 0:
        return FloatCategory.ZERO if mantissa == 0 else FloatCategory.SUBNORMAL
    if exponent == 0xFF:
        return FloatCategory.INFINITE if mantissa == 0 else FloatCategory.NAN
    return FloatCategory.NORMAL


def classify(f) -> FloatCategory:
    return classify_bits(f32_to_bits(f))


def to_f32(value) -> np.float32:
    """
    Narrow any real number to float32.

    Integers are widened to float first; those beyond the double range
    become a signed infinity. Overflow of the float32 cast is silent.
    """
    if isinstance(value, np.float32):
        return value
    if isinstance(value, numbers.Integral) and not isinstance(value, np.integer):
        try:
            value = float(value)
        except OverflowError:
            value = math.copysign(math.inf, value)
    with np.errstate(over='ignore', invalid='ignore'):
        return np.float32(value)


def float_to_bf16(f) -> int:
    """
    Convert a float32 to the raw bits of a bfloat16.

    The conversion is lossy:
      * zeros and subnormals become a zero of the same sign,
      * infinities are truncated (exact),
      * every NaN is truncated and made quiet, so signaling NaNs do not survive,
      * normal values are rounded to nearest, ties to even. Values just below
        the float32 maximum round up to infinity.
    """
    f32_bits = f32_to_bits(to_f32(f))
    upper = (f32_bits >> 16) & BF16_BITS_MASK
    category = classify_bits(f32_bits)

    if category in (FloatCategory.ZERO, FloatCategory.SUBNORMAL):
        return upper & BF16_SIGN_MASK
    if category == FloatCategory.INFINITE:
        return upper
    if category == FloatCategory.NAN:
        return upper | BF16_QUIET_BIT

    # Bit 16 breaks ties so that exact halves land on an even result
    rounding_bias = BF16_ROUNDING_BIAS + (upper & 0x1)
    return ((f32_bits + rounding_bias) >> 16) & BF16_BITS_MASK


def bf16_to_float(bf16: int) -> np.float32:
    f32_bits = (bf16 & BF16_BITS_MASK) << 16
    return bits_to_f32(f32_bits)
