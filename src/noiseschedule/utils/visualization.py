"""
Diffusion noise schedule visualization.

Definitions:
- beta_t:
    Per-timestep noise variance. Controls how much noise is added at each step.
- alpha_t = 1 - beta_t:
    Per-timestep signal retention factor.
- alpha_bar_t = ∏_{i=1}^t alpha_i:
    Cumulative signal retention up to timestep t.
- sqrt(alpha_bar_t):
    Coefficient on the original clean sample x_0 in the forward diffusion process.
- sqrt(1 - alpha_bar_t):
    Coefficient on the noise epsilon in the forward diffusion process.
- SNR(dB) = 10 * log10(alpha_bar_t / (1 - alpha_bar_t))

Forward process:
    x_t = sqrt(alpha_bar_t) * x_0 + sqrt(1 - alpha_bar_t) * epsilon
"""

from pathlib import Path

import matplotlib.pyplot as plt

from noiseschedule.models.schedule import TimestepRecord


def plot_schedule(records: list[TimestepRecord], output_path, title: str | None = None) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    t = [r.t for r in records]

    fig, (ax, snr_ax) = plt.subplots(2, 1, figsize=(10, 9), sharex=True)
    ax.plot(t, [r.beta for r in records], label=r"$\beta_t$ (noise variance)", color="red")
    ax.plot(t, [r.alpha for r in records], label=r"$\alpha_t = 1 - \beta_t$", color="blue")
    ax.plot(t, [r.alpha_bar for r in records], label=r"$\bar{\alpha}_t$ (cumulative signal)", color="black")
    ax.plot(t, [r.sqrt_alpha_bar for r in records], label=r"$\sqrt{\bar{\alpha}_t}$ (signal coeff)", color="purple")
    ax.plot(
        t,
        [r.sqrt_one_minus_alpha_bar for r in records],
        label=r"$\sqrt{1 - \bar{\alpha}_t}$ (noise coeff)",
        color="green"
    )
    ax.set_ylabel("Value")
    ax.set_title(title or "Diffusion Noise Schedule")
    ax.legend()
    ax.grid(alpha=0.3)

    snr_ax.plot(t, [r.snr_db for r in records], color="orange")
    snr_ax.set_xlabel("Timestep")
    snr_ax.set_ylabel("SNR (dB)")
    snr_ax.grid(alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)

    return output_path
