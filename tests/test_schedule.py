import math

import pytest
import torch

from noiseschedule.models.schedule import (
    ScheduleParams,
    ScheduleType,
    calculate_schedule,
    evaluate_betas,
    get_betas,
    linspace,
    terminal_snr_db,
)


def test_linspace_hits_both_ends():
    values = linspace(0.0, 1.0, 5)
    assert values.tolist() == [0.0, 0.25, 0.5, 0.75, 1.0]


def test_linspace_single_value_is_start():
    assert linspace(3.0, 7.0, 1).tolist() == [3.0]
    assert linspace(3.0, 7.0, 0).tolist() == [3.0]
    assert linspace(3.0, 7.0, -4).tolist() == [3.0]


def test_linspace_floors_fractional_count():
    values = linspace(0.0, 1.0, 2.9)
    assert values.tolist() == [0.0, 1.0]


def test_linspace_descending():
    assert linspace(4, 1, 4).tolist() == [4.0, 3.0, 2.0, 1.0]


@pytest.mark.parametrize("schedule", list(ScheduleType))
@pytest.mark.parametrize("num_timesteps", [1, 2, 7, 100, 12.6])
def test_record_count_and_contiguous_steps(schedule, num_timesteps):
    params = ScheduleParams(beta_start=0.0001, beta_end=0.02, num_timesteps=num_timesteps, schedule=schedule)
    records = calculate_schedule(params)

    n = max(1, math.floor(num_timesteps))
    assert len(records) == n
    assert [r.t for r in records] == list(range(1, n + 1))


def test_linear_two_steps():
    records = calculate_schedule(ScheduleParams(0.1, 0.3, 2, ScheduleType.LINEAR))

    assert [r.beta for r in records] == [0.1, 0.3]
    assert [r.alpha for r in records] == [0.9, 0.7]
    assert [r.alpha_bar for r in records] == [0.9, 0.63]


def test_const_ignores_beta_start():
    betas = get_betas(ScheduleParams(0.7, 0.05, 5, ScheduleType.CONST))
    assert betas.tolist() == [0.05] * 5


def test_quad_is_linear_in_sqrt_space():
    betas = get_betas(ScheduleParams(0.0001, 0.04, 3, ScheduleType.QUAD))
    assert betas.tolist() == pytest.approx([0.0001, 0.011025, 0.04])


def test_sqrt_is_linear_in_squared_space():
    betas = get_betas(ScheduleParams(0.1, 0.3, 3, ScheduleType.SQRT))
    assert betas.tolist() == pytest.approx([0.1, math.sqrt(0.05), 0.3])


def test_recip_ascends_to_beta_end():
    betas = get_betas(ScheduleParams(0.5, 0.02, 4, ScheduleType.RECIP))
    assert betas.tolist() == pytest.approx([0.02 / 4, 0.02 / 3, 0.02 / 2, 0.02])


def test_log_is_geometric():
    betas = get_betas(ScheduleParams(0.001, 0.1, 3, ScheduleType.LOG))
    assert betas.tolist() == pytest.approx([0.001, 0.01, 0.1])


def test_log_floors_non_positive_bounds():
    betas = get_betas(ScheduleParams(0.0, 0.02, 2, ScheduleType.LOG))
    assert betas[0].item() == pytest.approx(1e-10)
    assert torch.isfinite(betas).all()

    betas = get_betas(ScheduleParams(-1.0, -1.0, 3, ScheduleType.LOG))
    assert betas.tolist() == pytest.approx([1e-10] * 3)


def test_exp_interpolates_pow2_bounds():
    betas = get_betas(ScheduleParams(0.1, 0.5, 3, ScheduleType.EXP))
    mid = math.log2((2 ** 0.1 + 2 ** 0.5) / 2)
    assert betas.tolist() == pytest.approx([0.1, mid, 0.5])


def test_unknown_schedule_falls_back_to_linear(caplog):
    params = ScheduleParams(0.0001, 0.02, 10, "cosine")
    with caplog.at_level("WARNING"):
        betas = get_betas(params)

    expected = get_betas(ScheduleParams(0.0001, 0.02, 10, ScheduleType.LINEAR))
    assert torch.equal(betas, expected)
    assert "cosine" in caplog.text


def test_plain_string_schedule_is_accepted():
    by_str = get_betas(ScheduleParams(0.0001, 0.04, 5, "quad"))
    by_enum = get_betas(ScheduleParams(0.0001, 0.04, 5, ScheduleType.QUAD))
    assert torch.equal(by_str, by_enum)


@pytest.mark.parametrize("schedule, expected_beta", [
    (ScheduleType.LINEAR, 0.001),
    (ScheduleType.QUAD, 0.001),
    (ScheduleType.SQRT, 0.001),
    (ScheduleType.LOG, 0.001),
    (ScheduleType.EXP, 0.001),
    (ScheduleType.CONST, 0.05),
    (ScheduleType.RECIP, 0.05),
])
def test_single_step_schedule(schedule, expected_beta):
    records = calculate_schedule(ScheduleParams(0.001, 0.05, 1, schedule))

    assert len(records) == 1
    record = records[0]
    assert record.t == 1
    assert record.beta == pytest.approx(expected_beta)
    assert record.alpha_bar == 1 - record.beta


def test_linear_alpha_bar_and_snr_strictly_decrease():
    records = calculate_schedule(ScheduleParams(0.0001, 0.02, 200, ScheduleType.LINEAR))

    for prev, cur in zip(records, records[1:]):
        assert cur.alpha_bar < prev.alpha_bar
        assert cur.snr_db < prev.snr_db


def test_alpha_bar_is_running_product():
    betas = [0.1, 0.2, 0.3, 0.4]
    records = evaluate_betas(betas)

    running = 1.0
    for beta, record in zip(betas, records):
        running *= 1 - beta
        assert record.alpha_bar == pytest.approx(running)
        assert record.one_minus_alpha_bar == pytest.approx(1 - running)
        assert record.sqrt_alpha_bar == pytest.approx(math.sqrt(running))
        assert record.sqrt_one_minus_alpha_bar == pytest.approx(math.sqrt(1 - running))
        assert record.snr == pytest.approx(running / (1 - running))
        assert record.snr_db == pytest.approx(10 * math.log10(running / (1 - running)))


def test_zero_noise_uses_denominator_floor():
    record = evaluate_betas([0.0])[0]

    assert record.alpha_bar == 1.0
    assert record.one_minus_alpha_bar == 0.0
    assert record.snr == pytest.approx(1e12)
    assert record.snr_db == pytest.approx(120.0)


def test_small_nonzero_denominator_is_not_floored():
    record = evaluate_betas([1e-13])[0]

    assert record.one_minus_alpha_bar > 0
    assert record.snr == record.alpha_bar / record.one_minus_alpha_bar
    assert record.snr > 1e12


def test_full_noise_clamps_snr_db():
    record = evaluate_betas([1.0])[0]

    assert record.alpha_bar == 0.0
    assert record.snr == 0.0
    assert record.snr_db == pytest.approx(-200.0)


def test_same_inputs_same_outputs():
    params = ScheduleParams(0.0001, 0.02, 50, ScheduleType.EXP)
    assert calculate_schedule(params) == calculate_schedule(params)


@pytest.mark.parametrize("schedule", list(ScheduleType))
def test_terminal_snr_db_matches_last_record(schedule):
    params = ScheduleParams(0.0001, 0.02, 100, schedule)
    assert terminal_snr_db(params) == calculate_schedule(params)[-1].snr_db
