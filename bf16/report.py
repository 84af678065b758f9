#!/usr/bin/env python3
"""
Print how a set of probe values narrow to bfloat16 and widen back,
and check the expected raw bits of each.

Usage: python -m bf16.report [error_plot.png]
"""

import sys

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from bf16.bfloat16 import BFloat16
from bf16.floats import bits_to_f32, classify

# (label, float32 input, expected bfloat16 bits)
PROBES = [
    ("zero", np.float32(0.0), 0x0000),
    ("minus zero", np.float32(-0.0), 0x8000),
    ("one", np.float32(1.0), 0x3F80),
    ("one + 0.00390630", np.float32(1.0 + 0.00390630), 0x3F80),
    ("one + 0.00390631", np.float32(1.0 + 0.00390631), 0x3F81),
    ("pi", np.float32(np.pi), 0x4049),
    ("256", np.float32(256.0), 0x4380),
    ("257 (tie, even)", np.float32(257.0), 0x4380),
    ("259 (tie, even)", np.float32(259.0), 0x4382),
    ("min normal", bits_to_f32(0x00800000), 0x0080),
    ("max subnormal", bits_to_f32(0x007FFFFF), 0x0000),
    ("-denorm min", bits_to_f32(0x80000001), 0x8000),
    ("max bfloat16", np.float32(3.38953139e38), 0x7F7F),
    ("max float32", bits_to_f32(0x7F7FFFFF), 0x7F80),
    ("lowest float32", bits_to_f32(0xFF7FFFFF), 0xFF80),
    ("infinity", bits_to_f32(0x7F800000), 0x7F80),
    ("quiet NaN", bits_to_f32(0x7FC00000), 0x7FC0),
    ("signaling NaN", bits_to_f32(0x7F810000), 0x7FC1),
    ("-signaling NaN", bits_to_f32(0xFFBF0000), 0xFFFF),
]


def print_probe_table():
    """Print the probe table. Returns True when every probe matches."""
    print("=" * 78)
    print("bfloat16 conversion report")
    print("=" * 78)
    print()
    print(f"{'Probe':<18} {'Category':<10} {'Input':<16} {'Widened':<16} {'Bits':<8} {'Match':<8}")
    print("-" * 78)

    all_match = True
    for label, f, expected_bits in PROBES:
        bf = BFloat16.from_f32(f)
        got_bits = bf.to_bits()
        match = "✅ YES" if got_bits == expected_bits else "❌ NO"
        if got_bits != expected_bits:
            all_match = False

        print(f"{label:<18} {classify(f).name:<10} {float(f):<16.8g} {float(bf):<16.8g} 0x{got_bits:04X}  {match:<8}")
        if got_bits != expected_bits:
            print(f"  Expected BF16: 0x{expected_bits:04X}, Got: 0x{got_bits:04X}")

    print()
    return all_match


def roundtrip_relative_error(values: np.ndarray) -> np.ndarray:
    errors = np.empty(len(values), dtype=np.float64)
    for i, v in enumerate(values):
        widened = float(BFloat16.from_f32(v))
        errors[i] = abs(widened - float(v)) / abs(float(v))
    return errors


def plot_roundtrip_error(path, num_points=4096):
    """Plot round-trip relative error over the normal range and save it to path."""
    values = np.logspace(-37, 38, num_points, dtype=np.float64).astype(np.float32)
    errors = roundtrip_relative_error(values)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.loglog(values, np.maximum(errors, 1e-12), ".", markersize=2)
    ax.axhline(2.0 ** -8, color="red", linestyle="--", label="half epsilon (2^-8)")
    ax.set_xlabel("float32 input")
    ax.set_ylabel("relative error after round trip")
    ax.set_title("bfloat16 round-trip relative error")
    ax.legend()
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)

    worst = float(errors.max())
    print(f"Worst relative error over {num_points} points: {worst:.6g} (bound {2.0 ** -8:.6g})")
    if worst > 2.0 ** -8:
        raise RuntimeError(f"Round-trip error {worst} exceeds half a bfloat16 epsilon")
    print(f"Saved error plot to {path}")


def main():
    all_match = print_probe_table()
    if all_match:
        print("✅ All probes match exactly!")
    else:
        print("❌ Some probes do not match")

    if len(sys.argv) > 1:
        plot_roundtrip_error(sys.argv[1])

    return all_match


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
