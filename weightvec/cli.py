"""
Command-line tools for weightvec.

Small developer utilities for eyeballing the samplers and log-domain
kernels and for managing the configuration file.
"""

import logging
from pathlib import Path

import click
import numpy as np
from rich.console import Console
from rich.table import Table

from .config import ConfigManager, VectorConfig, get_config
from .errors import PreconditionViolation
from .numeric import VariateGenerator, log_add
from .utils.logging_setup import log_operation, setup_logging


console = Console()
logger = logging.getLogger(__name__)

DISTRIBUTIONS = ["gaussian", "student-t", "gamma", "beta"]


@click.group(name="weightvec")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level (defaults to the configured one)"
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write JSON-lines events (including resizes and table builds) here"
)
def cli(log_level, log_file):
    """Sparse weight vector utilities."""
    setup_logging(level=log_level or get_config().log_level, log_file=log_file)


@cli.command(name="sample")
@click.argument("distribution", type=click.Choice(DISTRIBUTIONS))
@click.option("--n", "n_draws", type=int, default=1000, help="Number of draws")
@click.option("--seed", type=int, default=42, help="Random seed for reproducibility")
@click.option("--shape", type=float, default=2.0, help="Gamma shape")
@click.option("--rate", type=float, default=1.0, help="Gamma rate")
@click.option("--alpha", type=float, default=2.0, help="Beta alpha")
@click.option("--beta", type=float, default=2.0, help="Beta beta")
@click.option("--dof", type=float, default=5.0, help="Student-t degrees of freedom")
def sample(distribution, n_draws, seed, shape, rate, alpha, beta, dof):
    """Draw variates and summarize them."""
    if n_draws < 1:
        raise click.BadParameter("must be at least 1", param_hint="--n")

    log_operation(logger, "sample", distribution=distribution, n=n_draws, seed=seed)
    generator = VariateGenerator(seed=seed)
    draw = {
        "gaussian": generator.gaussian,
        "student-t": lambda: generator.student_t(dof),
        "gamma": lambda: generator.gamma(shape, rate),
        "beta": lambda: generator.beta(alpha, beta),
    }[distribution]

    try:
        draws = np.array([draw() for _ in range(n_draws)])
    except PreconditionViolation as e:
        raise click.ClickException(e.message)

    table = Table(title=f"{distribution} ({n_draws} draws, seed {seed})")
    table.add_column("Statistic", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Mean", f"{draws.mean():.4f}")
    table.add_row("Std", f"{draws.std():.4f}")
    table.add_row("Min", f"{draws.min():.4f}")
    table.add_row("Max", f"{draws.max():.4f}")

    console.print(table)


@cli.command(name="logadd")
@click.argument("values", nargs=-1, type=float, required=True)
@click.option("--tolerance", type=float, default=None, help="Tolerance window below the max")
def logadd(values, tolerance):
    """Print log(sum(exp(VALUES))). Use -- before negative values."""
    log_operation(logger, "logadd", terms=len(values), tolerance=tolerance)
    result = log_add(list(values), tolerance=tolerance)
    console.print(f"{result:.10g}")


@cli.group(name="config")
def config_group():
    """Manage weightvec configuration."""
    pass


@config_group.command(name="init")
@click.option(
    "--path",
    type=click.Path(),
    default=".weightvec.yml",
    help="Path for config file"
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Write the default configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return

    manager = ConfigManager(config_path)
    try:
        manager.save_config(VectorConfig())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file at {path}: {e}")
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.option(
    "--path",
    type=click.Path(exists=True),
    help="Path to config file"
)
def config_show(path):
    """Display the effective configuration."""
    manager = ConfigManager(Path(path) if path else None)
    try:
        config = manager.config
    except ValueError as e:
        raise click.ClickException(str(e))

    table = Table(title="weightvec configuration")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)

    for issue in manager.validate_config(config):
        console.print(f"[yellow]{issue}[/yellow]")


def main():
    """Console script entry point."""
    cli()


__all__ = ["cli", "main"]
