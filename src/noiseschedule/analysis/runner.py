from dataclasses import dataclass, replace
from logging import Logger
from pathlib import Path

from noiseschedule.configs import ProjectConfig, to_schedule_params
from noiseschedule.models.schedule import ScheduleParams, calculate_schedule
from noiseschedule.models.solver import solve_beta_end_for_snr
from noiseschedule.utils.export import save_csv
from noiseschedule.utils.visualization import plot_schedule


@dataclass
class RunSummary:
    params: ScheduleParams
    num_records: int
    terminal_alpha_bar: float
    terminal_snr_db: float
    csv_path: Path
    plot_path: Path | None = None
    solved_beta_end: float | None = None


def run_analysis(config: ProjectConfig, output_dir: Path, logger: Logger) -> RunSummary:
    params = to_schedule_params(config.schedule)

    solved_beta_end = None
    if config.solver.enabled:
        logger.info(f"Solving beta_end for a terminal SNR of {config.solver.target_snr_db} dB...")
        solved_beta_end = solve_beta_end_for_snr(
            target_snr_db=config.solver.target_snr_db,
            beta_start=params.beta_start,
            num_timesteps=params.num_timesteps,
            schedule=params.schedule,
            iterations=config.solver.iterations,
            tolerance_db=config.solver.tolerance_db,
        )
        params = replace(params, beta_end=solved_beta_end)
        logger.info(f"Solved beta_end: {solved_beta_end:.10f}")

    records = calculate_schedule(params)
    first, last = records[0], records[-1]

    logger.info(f"Schedule: {params.schedule.value}   |   Steps: {len(records)}   |   "
                f"Beta: {first.beta:.6g} -> {last.beta:.6g}")
    logger.info(f"Terminal alpha_bar: {last.alpha_bar:.6g}   |   Terminal SNR: {last.snr_db:.4f} dB")

    output_dir = Path(output_dir)
    csv_path = save_csv(records, output_dir / config.output.csv_filename)
    logger.info(f"Saved schedule table to {csv_path}")

    plot_path = None
    if config.output.plot:
        plot_path = plot_schedule(records, output_dir / config.output.plot_filename,
                                  title=f"Diffusion Noise Schedule ({params.schedule.value})")
        logger.info(f"Saved schedule plot to {plot_path}")

    return RunSummary(
        params=params,
        num_records=len(records),
        terminal_alpha_bar=last.alpha_bar,
        terminal_snr_db=last.snr_db,
        csv_path=csv_path,
        plot_path=plot_path,
        solved_beta_end=solved_beta_end,
    )
