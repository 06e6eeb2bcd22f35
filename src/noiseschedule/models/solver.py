import logging

from noiseschedule.models.schedule import ScheduleParams, ScheduleType, terminal_snr_db

logger = logging.getLogger(__name__)

SOLVER_ITERATIONS = 40
BETA_END_LOW = 1e-7
BETA_END_HIGH = 0.999
DEFAULT_TOLERANCE_DB = 1e-3


class SolverConvergenceError(ValueError):
    def __init__(self, target_snr_db: float, achieved_snr_db: float, beta_end: float):
        self.target_snr_db = target_snr_db
        self.achieved_snr_db = achieved_snr_db
        self.beta_end = beta_end
        super().__init__(f"No beta_end in [{BETA_END_LOW}, {BETA_END_HIGH}] reaches {target_snr_db} dB. "
                         f"Search ended at {beta_end=} with terminal SNR {achieved_snr_db:.6f} dB")


def bisect_beta_end(target_snr_db: float,
                    beta_start: float,
                    num_timesteps: int,
                    schedule: ScheduleType,
                    iterations: int = SOLVER_ITERATIONS) -> tuple[float, float]:
    """
    Fixed-count bisection over beta_end, returning the final (low, high) bracket.

    Assumes terminal SNR goes down as beta_end goes up (more noise per step, less signal left at step T).
    There's no early exit, the bracket just halves `iterations` times.
    """
    low, high = BETA_END_LOW, BETA_END_HIGH

    for _ in range(iterations):
        mid = (low + high) / 2
        params = ScheduleParams(beta_start=beta_start, beta_end=mid, num_timesteps=num_timesteps, schedule=schedule)

        if terminal_snr_db(params) > target_snr_db:
            low = mid  # Still too clean, need a larger beta_end
        else:
            high = mid

    logger.debug(f"Bisection for {target_snr_db} dB ({schedule}) ended with bracket [{low}, {high}]")
    return low, high


def solve_beta_end_for_snr(target_snr_db: float,
                           beta_start: float,
                           num_timesteps: int,
                           schedule: ScheduleType,
                           iterations: int = SOLVER_ITERATIONS,
                           tolerance_db: float | None = None) -> float:
    """
    Solves for the beta_end whose schedule ends at `target_snr_db`.

    :param tolerance_db: Max allowed gap between the target and the terminal SNR at the returned beta_end.
                         A larger gap raises SolverConvergenceError. None skips the check and returns the
                         bracket's upper end no matter what
    """
    _, high = bisect_beta_end(target_snr_db, beta_start, num_timesteps, schedule, iterations)

    if tolerance_db is not None:
        params = ScheduleParams(beta_start=beta_start, beta_end=high, num_timesteps=num_timesteps, schedule=schedule)
        achieved = terminal_snr_db(params)
        if not abs(achieved - target_snr_db) <= tolerance_db:
            logger.warning(f"Solver missed target {target_snr_db} dB by {abs(achieved - target_snr_db):.6f} dB "
                           f"({schedule=}, {beta_start=}, {num_timesteps=})")
            raise SolverConvergenceError(target_snr_db, achieved, high)

    return high
