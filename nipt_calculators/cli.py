from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from nipt_calculators.config import CalculatorConfig, load_config
from nipt_calculators.nipt_risk_calculator.batch import score_csv_to_csv
from nipt_calculators.nipt_risk_calculator.calculator import NIPTCalculator
from nipt_calculators.nipt_risk_calculator.form_processing import RiskForm, form_to_risk_input
from nipt_calculators.nipt_risk_calculator.report import build_report, format_percent
from nipt_calculators.nipt_risk_calculator.scenario_grid import build_scenario_grid

app = typer.Typer(no_args_is_help=True, help="NIPT CLI - Prenatal screening risk calculator")


def _config(ctx: typer.Context) -> CalculatorConfig:
    return ctx.obj["config"]


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    ctx.obj = {"config": config}


@app.command()
def compute(
    ctx: typer.Context,
    age: Optional[int] = typer.Option(None, "--age", help="Maternal age in years"),
    result: Optional[str] = typer.Option(None, "--result", help="low, high or suspicious"),
    condition: Optional[str] = typer.Option(None, "--condition", help="t21, t18, t13 or sca"),
    sensitivity: Optional[float] = typer.Option(None, "--sensitivity", help="Sensitivity in percent"),
    specificity: Optional[float] = typer.Option(None, "--specificity", help="Specificity in percent"),
    anatomy_normal: bool = typer.Option(
        False, "--anatomy-normal/--no-anatomy-normal", help="Anatomy scan was normal"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print output as JSON"),
) -> None:
    """Compute PPV / NPV for a single screening result."""

    config = _config(ctx)
    form = RiskForm(
        age=age,
        result=result,
        condition=condition,
        sensitivity=sensitivity,
        specificity=specificity,
        anatomy_normal=anatomy_normal,
    )

    try:
        risk_input = form_to_risk_input(form, config)
        calculator = NIPTCalculator(tables_dir=config.tables_dir)
        output = calculator.compute_risk(risk_input)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    report = build_report(risk_input, output)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "input": risk_input.model_dump(mode="json"),
                    "output": output.model_dump(mode="json"),
                    "report": report.model_dump(mode="json"),
                },
                indent=2,
            )
        )
        return

    if report.npv_percent is not None:
        typer.echo(f"NPV: {report.npv_percent}%")
        typer.echo(
            f"False negative: {report.per_thousand['false_negative']} in 1000 "
            f"({format_percent(output.false_negative_rate)}%)"
        )
        typer.echo(f"Fetal sex mismatch: {report.sex_mismatch_percent}%")
    else:
        typer.echo(f"PPV for {risk_input.condition.label}: {report.ppv_percent}%")
        typer.echo(f"Prevalence: {report.prevalence_percent}%")
        typer.echo(f"PPV vs amniocentesis risk: {report.times_amniocentesis_risk:g} times higher")

    typer.echo("")
    for name, value in report.variables.items():
        typer.echo(f"{name}: {value}")
    typer.echo(f"{report.trace.name} = {report.trace.formula}")
    typer.echo(f"  = {report.trace.substituted}")
    typer.echo(f"  = {report.trace.value!r}")


@app.command()
def grid(
    ctx: typer.Context,
    result: str = typer.Option(..., "--result", help="low, high or suspicious"),
    condition: Optional[str] = typer.Option(None, "--condition", help="t21, t18, t13 or sca"),
    output: Optional[str] = typer.Option(None, "--output", help="Write the grid to this CSV path"),
) -> None:
    """Print risk figures for every configured age."""

    config = _config(ctx)
    try:
        df = build_scenario_grid(result, condition, config=config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if output:
        output_path = Path(output).expanduser().resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.write_csv(output_path)
        typer.echo(f"Wrote {df.height} rows to {output_path}")
    else:
        typer.echo(str(df))


@app.command()
def batch(
    ctx: typer.Context,
    input_csv: str = typer.Argument(..., help="CSV with age, result, condition, sensitivity, specificity"),
    output_csv: str = typer.Argument(..., help="Output CSV path"),
) -> None:
    """Score every row of a scenario CSV."""

    try:
        count = score_csv_to_csv(
            input_csv_path=input_csv,
            output_csv_path=output_csv,
            config=_config(ctx),
        )
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Wrote {count} rows to {Path(output_csv).expanduser().resolve()}")


if __name__ == "__main__":
    app()
