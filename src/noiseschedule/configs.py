import math
import re
from dataclasses import dataclass, field
from typing import Optional
from omegaconf import MISSING

from noiseschedule.models.schedule import ScheduleParams, ScheduleType
from noiseschedule.models.solver import DEFAULT_TOLERANCE_DB

DEFAULT_BETA_START = 0.0001
DEFAULT_BETA_END = 0.02
DEFAULT_NUM_TIMESTEPS = 100

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
_INT_PREFIX = re.compile(r"^\s*([+-]?)(?:0[xX]([0-9a-fA-F]+)|(\d+))")


@dataclass
class ScheduleConfig:
    schedule: str = "linear"  # One of [linear, quad, sqrt, const, recip, log, exp]
    beta_start: float = DEFAULT_BETA_START
    beta_end: float = DEFAULT_BETA_END  # Overwritten by the solver's result when solver.enabled
    num_timesteps: int = DEFAULT_NUM_TIMESTEPS


@dataclass
class SolverConfig:
    enabled: bool = False
    target_snr_db: float = MISSING     # Terminal SNR (dB) the schedule should end at
    tolerance_db: Optional[float] = DEFAULT_TOLERANCE_DB  # None for the silent (no convergence check) behaviour
    iterations: int = 40


@dataclass
class OutputConfig:
    csv_filename: str = "diffusion_schedule.csv"
    plot: bool = True
    plot_filename: str = "diffusion_schedule.png"


@dataclass
class ProjectConfig:
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def _parse_float(raw: str | None, default: float) -> float:
    match = _FLOAT_PREFIX.match(raw or "")
    value = float(match.group(1).replace("Infinity", "inf")) if match else math.nan
    # Empty, unparseable and zero all fall back, same as the form fields always did
    return default if (math.isnan(value) or value == 0) else value


def _parse_int(raw: str | None, default: int) -> int:
    match = _INT_PREFIX.match(raw or "")
    if not match:
        return default

    sign, hex_digits, dec_digits = match.groups()
    # A 0x prefix reads as hex, same as parseInt without a radix
    value = int(hex_digits, 16) if hex_digits else int(dec_digits)
    return (-value if sign == "-" else value) or default


def parse_schedule(raw: str | None) -> ScheduleType:
    try:
        return ScheduleType((raw or "").strip().lower())
    except ValueError:
        return ScheduleType.LINEAR


def parse_schedule_params(beta_start: str | None,
                          beta_end: str | None,
                          num_timesteps: str | None,
                          schedule: str | None = "linear") -> ScheduleParams:
    """Builds ScheduleParams from raw text inputs, replacing anything unusable with the defaults"""
    return ScheduleParams(
        beta_start=_parse_float(beta_start, DEFAULT_BETA_START),
        beta_end=_parse_float(beta_end, DEFAULT_BETA_END),
        num_timesteps=max(1, _parse_int(num_timesteps, DEFAULT_NUM_TIMESTEPS)),
        schedule=parse_schedule(schedule),
    )


def to_schedule_params(config: ScheduleConfig) -> ScheduleParams:
    return ScheduleParams(
        beta_start=config.beta_start,
        beta_end=config.beta_end,
        num_timesteps=max(1, config.num_timesteps),
        schedule=parse_schedule(config.schedule),
    )
