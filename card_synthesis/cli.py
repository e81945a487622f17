"""
Card synthesis CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (list registry, fuse a batch of card outputs).
  5. Report result to stdout.

Install and run::

    pip install -e .
    card-synthesis --help
    card-synthesis validate-config
    card-synthesis list-cards --category risk
    card-synthesis synthesize --input data/inputs/reliance.json
    card-synthesis synthesize --input cards.json --symbol TCS --json
    card-synthesis synthesize --input cards.json --save

Input file shape for ``synthesize``::

    {"symbol": "RELIANCE", "cards": [{"cardId": "...", ...}, ...]}

or a bare list of card outputs, in which case ``--symbol`` is required.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="card-synthesis",
    help="Fuse independent analysis-card outputs into one composite verdict.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from card_synthesis.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from card_synthesis.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_registry_or_exit(config):
    from card_synthesis.registry.registry import CardRegistry

    try:
        return CardRegistry.from_file(config.registry.cards_file)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Card registry failed to load: {exc}", err=True)
        raise typer.Exit(code=1)


def _read_batch_or_exit(input_file: str, symbol: Optional[str]) -> tuple[str, list[Any]]:
    """Read a batch file and return ``(symbol, raw_card_entries)``."""
    path = Path(input_file)
    if not path.exists():
        typer.echo(f"[ERROR] Input file not found: {path}", err=True)
        raise typer.Exit(code=1)

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] Input file is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=1)

    if isinstance(payload, list):
        cards = payload
    elif isinstance(payload, dict) and isinstance(payload.get("cards"), list):
        cards = payload["cards"]
        symbol = symbol or payload.get("symbol")
    else:
        typer.echo(
            "[ERROR] Input must be a list of card outputs or an object with a 'cards' list.",
            err=True,
        )
        raise typer.Exit(code=1)

    if not symbol or not str(symbol).strip():
        typer.echo("[ERROR] No symbol given: pass --symbol or set 'symbol' in the file.", err=True)
        raise typer.Exit(code=1)

    return str(symbol).strip(), cards


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    syn = config.synthesis

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Cards file:        {config.registry.cards_file}")
    typer.echo(f"  Deadband per card: {syn.deadband_per_card}")
    typer.echo(f"  Agreement (hi/md): {syn.high_agreement} / {syn.medium_agreement}")
    typer.echo(f"  Top insights:      {syn.top_n_insights}")
    typer.echo(
        "  Composite weights: "
        + ", ".join(f"{k}={v}" for k, v in sorted(config.composite_weights.items()))
    )
    typer.echo(f"  Producer workers:  {config.producers.max_workers}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("list-cards")
def list_cards_cmd(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        "-c",
        help="Only list cards in this fusion category.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List cards in the static registry with their category and weight."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    registry = _load_registry_or_exit(config)

    ids = registry.card_ids()
    specs = [registry.get(cid) for cid in ids]
    if category is not None:
        specs = [s for s in specs if s.category == category]

    if not specs:
        typer.echo(f"No cards found (category={category!r}).")
        return

    header = f"  {'Card':<28}  {'Category':<10}  {'Weight':>6}  {'Enabled':>7}"
    typer.echo(header)
    typer.echo("  " + "-" * (len(header) - 2))
    for spec in specs:
        typer.echo(
            f"  {spec.card_id[:28]:<28}  {spec.category:<10}  "
            f"{spec.weight:>6.2f}  {'yes' if spec.enabled else 'no':>7}"
        )
    typer.echo("")
    typer.echo(f"  {len(specs)} card(s).")


@app.command("synthesize")
def synthesize_cmd(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="JSON file with card outputs for one symbol.",
    ),
    symbol: Optional[str] = typer.Option(
        None,
        "--symbol",
        "-s",
        help="Target symbol (required when the file is a bare list).",
    ),
    top_n: Optional[int] = typer.Option(
        None,
        "--top-n",
        help="Override the number of top insights.",
    ),
    tags: Optional[list[str]] = typer.Option(
        None,
        "--tag",
        help="Only fuse cards carrying this tag (repeatable).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the composite as JSON instead of the ASCII report.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Also write composite_{symbol}_{date}.json to this directory.",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        help="Write the composite JSON to [reporting] output_dir from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fuse a batch of card outputs into one composite verdict.

    Malformed card outputs never abort the run; they are listed under
    skipped cards with the reason.
    """
    from card_synthesis.reporting.export import composite_to_dict, write_composite_json
    from card_synthesis.reporting.formatters import format_composite_report
    from card_synthesis.synthesis.engine import SynthesisEngine

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if top_n is not None:
        if top_n < 0:
            typer.echo(f"[ERROR] --top-n must be >= 0, got {top_n}.", err=True)
            raise typer.Exit(code=1)
        config = config.model_copy(
            update={"synthesis": config.synthesis.model_copy(update={"top_n_insights": top_n})}
        )

    target_symbol, cards = _read_batch_or_exit(input_file, symbol)
    registry = _load_registry_or_exit(config)
    engine = SynthesisEngine.from_app_config(config, registry=registry)

    result = engine.synthesize(target_symbol, cards, tags=set(tags) if tags else None)

    if as_json:
        typer.echo(json.dumps(composite_to_dict(result), indent=2))
    else:
        typer.echo(format_composite_report(result))

    target_dir = output_dir or (config.reporting.output_dir if save else None)
    if target_dir:
        written = write_composite_json(result, Path(target_dir))
        typer.echo(f"[OK] Composite written to {written}", err=as_json)


if __name__ == "__main__":
    app()
