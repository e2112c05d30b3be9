import typer

from .config import MODE_DESCRIPTIONS, Mode, Settings
from .demo import run_demo
from .engine import EnforcementEngine, Violation
from .errors import InvalidModeError
from .logging import get_logger

app = typer.Typer(help="bulwark – runtime attribute discipline for Python classes", no_args_is_help=True)


@app.command()
def modes() -> None:
    """List the enforcement modes."""
    for mode in Mode:
        typer.echo(f"{mode.value:<8}{MODE_DESCRIPTIONS[mode]}")


@app.command()
def demo(
    mode: str = typer.Option(Mode.DEFEND.value, "--mode", "-m", help="Enforcement mode: defend, seal or off"),
    stack_limit: int = typer.Option(0, help="Frames of call stack to show per violation (0 hides them)"),
) -> None:
    """
    Run a walkthrough that triggers every kind of violation.

    Each reported violation is printed as it happens, followed by a count of
    violations per kind.
    """
    logger = get_logger(__name__)

    try:
        selected = Mode.parse(mode)
    except InvalidModeError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc

    reported: list[Violation] = []

    def sink(violation: Violation) -> None:
        reported.append(violation)
        text = violation.format() if stack_limit > 0 else violation.message
        typer.echo(f"  [{violation.kind.value}] {text}")

    engine = EnforcementEngine(
        Settings(mode=selected, schedule_reconcile=False, stack_limit=stack_limit or None),
        sink=sink,
    )
    logger.info(f"Running demo in '{selected.value}' mode")
    run_demo(engine, echo=typer.echo)

    typer.echo(f"\n{len(reported)} violation(s) reported")
    counts: dict[str, int] = {}
    for violation in reported:
        counts[violation.kind.value] = counts.get(violation.kind.value, 0) + 1
    for kind, count in sorted(counts.items()):
        typer.echo(f"   {kind}: {count}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
