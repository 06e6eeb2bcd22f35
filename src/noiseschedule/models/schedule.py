import logging
import math
from dataclasses import dataclass
from enum import Enum

import torch

logger = logging.getLogger(__name__)

LOG_FLOOR = 1e-10     # Keeps log2 finite when a beta bound is zero or negative
SNR_DENOM_FLOOR = 1e-12
SNR_FLOOR = 1e-20


class ScheduleType(str, Enum):
    LINEAR = "linear"
    QUAD = "quad"
    SQRT = "sqrt"
    CONST = "const"
    RECIP = "recip"
    LOG = "log"
    EXP = "exp"


@dataclass(frozen=True)
class ScheduleParams:
    beta_start: float
    beta_end: float
    num_timesteps: int
    schedule: ScheduleType = ScheduleType.LINEAR


@dataclass(frozen=True)
class TimestepRecord:
    t: int
    beta: float
    alpha: float
    alpha_bar: float
    one_minus_alpha_bar: float
    sqrt_alpha_bar: float
    sqrt_one_minus_alpha_bar: float
    snr: float
    snr_db: float


def num_steps(num_timesteps: float) -> int:
    return max(1, math.floor(num_timesteps))


def linspace(start: float, end: float, n: float) -> torch.Tensor:
    """
    Evenly spaced float64 values from start to end (both included).

    Each value is computed directly as start + step * i rather than by repeated addition,
    so the error doesn't accumulate along the sequence. A count below 2 gives [start].
    """
    count = num_steps(n)
    if count < 2:
        return torch.tensor([start], dtype=torch.float64)

    step = (end - start) / (count - 1)
    return start + step * torch.arange(count, dtype=torch.float64)


def _linear_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    return linspace(beta_start, beta_end, n)


def _quad_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    # Same as the "curved"/scaled-linear schedule used by SD: linear in sqrt space, then squared
    # torch.sqrt gives nan for a negative bound instead of raising like math.sqrt
    sqrt_start, sqrt_end = torch.sqrt(torch.tensor([beta_start, beta_end], dtype=torch.float64)).tolist()
    return linspace(sqrt_start, sqrt_end, n) ** 2


def _sqrt_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    return torch.sqrt(linspace(beta_start ** 2, beta_end ** 2, n))


def _const_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    return torch.full((n,), beta_end, dtype=torch.float64)


def _recip_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    # linspace(n, 1) descends, so betas ascend from beta_end / n up to beta_end
    return beta_end * (1 / linspace(n, 1, n))


def _log_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    # Interpolates in log2 space, so the growth across steps is exponential despite the name
    log_start = math.log2(max(LOG_FLOOR, beta_start))
    log_end = math.log2(max(LOG_FLOOR, beta_end))
    return torch.pow(2.0, linspace(log_start, log_end, n))


def _exp_betas(beta_start: float, beta_end: float, n: int) -> torch.Tensor:
    exp_start = math.pow(2, beta_start)
    exp_end = math.pow(2, beta_end)
    return torch.log2(linspace(exp_start, exp_end, n))


_BETA_BUILDERS = {
    ScheduleType.LINEAR: _linear_betas,
    ScheduleType.QUAD: _quad_betas,
    ScheduleType.SQRT: _sqrt_betas,
    ScheduleType.CONST: _const_betas,
    ScheduleType.RECIP: _recip_betas,
    ScheduleType.LOG: _log_betas,
    ScheduleType.EXP: _exp_betas,
}


def get_betas(params: ScheduleParams) -> torch.Tensor:
    n = num_steps(params.num_timesteps)

    # ScheduleType is a str enum, so plain strings like "quad" hit the same entries
    builder = _BETA_BUILDERS.get(params.schedule)
    if builder is None:
        logger.warning(f"Unknown schedule {params.schedule!r}, falling back to linear")
        builder = _linear_betas

    return builder(params.beta_start, params.beta_end, n)


def compute_statistics(betas) -> dict:
    """
    Per-step diffusion statistics for a beta sequence, as float64 tensors keyed by column name.

    - alpha_t = 1 - beta_t
    - alpha_bar_t = prod_{i<=t} alpha_i  (running product, left to right)
    - snr_t = alpha_bar_t / (1 - alpha_bar_t), with the denominator floored only when it's exactly 0
    - snr_db_t = 10 * log10(max(1e-20, snr_t))
    """
    beta = torch.as_tensor(betas, dtype=torch.float64)

    alpha = 1.0 - beta
    alpha_bar = torch.cumprod(alpha, dim=0)
    one_minus_alpha_bar = 1.0 - alpha_bar

    denom = torch.where(one_minus_alpha_bar == 0, torch.full_like(one_minus_alpha_bar, SNR_DENOM_FLOOR), one_minus_alpha_bar)
    snr = alpha_bar / denom
    snr_db = 10 * torch.log10(torch.clamp(snr, min=SNR_FLOOR))

    return {
        "t": torch.arange(1, len(beta) + 1),
        "beta": beta,
        "alpha": alpha,
        "alpha_bar": alpha_bar,
        "one_minus_alpha_bar": one_minus_alpha_bar,
        "sqrt_alpha_bar": torch.sqrt(alpha_bar),
        "sqrt_one_minus_alpha_bar": torch.sqrt(one_minus_alpha_bar),
        "snr": snr,
        "snr_db": snr_db,
    }


def evaluate_betas(betas) -> list[TimestepRecord]:
    stats = compute_statistics(betas)
    columns = {key: value.tolist() for key, value in stats.items()}
    return [TimestepRecord(**dict(zip(columns, row))) for row in zip(*columns.values())]


def calculate_schedule(params: ScheduleParams) -> list[TimestepRecord]:
    return evaluate_betas(get_betas(params))


def terminal_snr_db(params: ScheduleParams) -> float:
    return compute_statistics(get_betas(params))["snr_db"][-1].item()
