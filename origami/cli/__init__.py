from __future__ import annotations

"""
origami.cli
-----------

Local tooling for the Origami raffle.

Examples
--------
# Sell 25 tickets and run the raffle past its end date, JSON output
python -m origami.cli simulate --buyers 25 --json

# Plain summary followed by the Prometheus exposition
python -m origami.cli simulate --buyers 5 --metrics

# Non-reproducible run with OS randomness for the holder draws
python -m origami.cli simulate --buyers 5 --system-random

# Vested payout, offset end date, custom seed
ORIGAMI_PAYOUT_MODE=vested ORIGAMI_END_DATE_MODE=offset \\
    python -m origami.cli simulate --buyers 10 --seed demo

# Show the effective configuration (defaults < $ORIGAMI_CONFIG_FILE < ORIGAMI_* env)
python -m origami.cli config --json
"""

import json
import logging
from typing import Any, Dict, Optional

import typer

from origami import metrics, simulate
from origami.config import COIN, load_config
from origami.errors import OrigamiError

app = typer.Typer(
    name="origami",
    add_completion=False,
    no_args_is_help=True,
    help="Simulate and inspect the Origami NFT raffle locally.",
)


def _fmt_coin(units: int) -> str:
    s = f"{units / COIN:.9f}".rstrip("0").rstrip(".")
    return s if s else "0"


@app.callback()
def _main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level (DEBUG, INFO, ...)."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("simulate")
def cmd_simulate(
    buyers: int = typer.Option(10, "--buyers", min=0, help="Number of ticket buyers (one ticket each)."),
    days: Optional[int] = typer.Option(None, "--days", min=1, help="Days to run (default: until a day past the end date)."),
    start: Optional[int] = typer.Option(None, "--start", help="Start timestamp in ms (default: a week before the end date)."),
    seed: str = typer.Option("origami", "--seed", help="Seed for the deterministic holder draws."),
    json_out: bool = typer.Option(False, "--json", help="Output the final status as JSON."),
    show_metrics: bool = typer.Option(False, "--metrics", help="Also print Prometheus metrics after the run."),
    system_random: bool = typer.Option(
        False, "--system-random", help="Draw holders from the OS CSPRNG instead of the seeded DRBG (ignores --seed)."
    ),
) -> None:
    """
    Run a raffle end-to-end against the in-memory host.
    """
    try:
        cfg = load_config()
        res: Dict[str, Any] = simulate(
            buyers,
            config=cfg,
            seed=seed.encode("utf-8"),
            start=start,
            days=days,
            system_random=system_random,
        )
    except OrigamiError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if json_out:
        typer.echo(json.dumps(res, indent=2, sort_keys=True))
    else:
        _print_summary(res)
    if show_metrics:
        typer.echo(metrics.render())


def _print_summary(res: Dict[str, Any]) -> None:
    typer.secho("Origami simulation:", bold=True)
    typer.echo(f"- tickets sold: {res['tickets_sold']} (rejected {res['rejected_purchases']})")
    typer.echo(f"- next price: {_fmt_coin(res['current_price'])}")
    typer.echo(f"- collected: {_fmt_coin(res['total_collected'])}")
    typer.echo(f"- reserve: {_fmt_coin(res['reserve_balance'])}")
    typer.echo(f"- small prizes paid: {_fmt_coin(res['small_paid'])} ({res['small_instalments_paid']} instalments)")
    typer.echo(f"- main prizes paid: {_fmt_coin(res['main_paid'])} (distributed={res['main_distributed']})")
    for color, owner in res["nft_owners"].items():
        typer.echo(f"- {color}: {owner or '-'}")
    failed = sum(1 for c in res["scheduled_calls"] if not c["ok"])
    typer.echo(f"- scheduled calls: {len(res['scheduled_calls'])} ({failed} rejected)")


@app.command("config")
def cmd_config(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """
    Print the effective raffle configuration.
    """
    try:
        cfg = load_config()
    except OrigamiError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    if json_out:
        typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
        return
    typer.secho("Origami configuration:", bold=True)
    for k, v in cfg.to_dict().items():
        typer.echo(f"- {k}: {v}")


__all__ = ["app"]
