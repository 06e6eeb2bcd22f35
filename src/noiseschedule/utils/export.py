import math
from decimal import Decimal
from pathlib import Path

from noiseschedule.models.schedule import TimestepRecord

CSV_HEADERS = ("t", "beta", "alpha", "alpha_bar", "1-alpha_bar",
               "sqrt(alpha_bar)", "sqrt(1-alpha_bar)", "SNR", "SNR(dB)")

# Same field order as CSV_HEADERS
CSV_FIELDS = ("t", "beta", "alpha", "alpha_bar", "one_minus_alpha_bar",
              "sqrt_alpha_bar", "sqrt_one_minus_alpha_bar", "snr", "snr_db")


def format_number(value: float) -> str:
    """
    Stringifies a number the way JavaScript's Number#toString does, so exported files stay
    byte-identical to the ones downstream tools already read: shortest round-trip digits,
    no trailing ".0" on integers, and exponent form only below 1e-6 or from 1e21 upwards (1e-7, 1.5e+21).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"  # Covers -0.0 as well

    # repr already gives the shortest digit string that round-trips
    sign, digit_tuple, exponent = Decimal(repr(float(value))).as_tuple()
    digits = "".join(map(str, digit_tuple))
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped

    k = len(digits)
    n = k + exponent  # Position of the decimal point relative to the first digit
    prefix = "-" if sign else ""

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
        body = f"{mantissa}e{'+' if e > 0 else '-'}{abs(e)}"

    return prefix + body


def schedule_to_csv(records: list[TimestepRecord]) -> str:
    lines = [",".join(CSV_HEADERS)]
    for record in records:
        lines.append(",".join(format_number(getattr(record, field)) for field in CSV_FIELDS))

    return "\n".join(lines)


def save_csv(records: list[TimestepRecord], path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(schedule_to_csv(records))

    return path
