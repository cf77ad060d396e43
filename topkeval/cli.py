"""
topkeval CLI

Command-line interface for running evaluations.
"""

import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="topkeval",
    help="topkeval - Top-K recommendation evaluation harness",
    add_completion=False,
)
console = Console()


@app.command()
def evaluate(
    data_path: Path = typer.Option(Path("data/"), "--data", "-d", help="Data directory"),
    train_file: str = typer.Option("train.rating", "--train", help="Training ratings file"),
    test_file: Optional[str] = typer.Option(None, "--test", help="Test ratings file"),
    negatives_file: Optional[str] = typer.Option(None, "--negatives", help="Negative candidates file"),
    mode: str = typer.Option("offline", "--mode", "-m", help="Protocol: offline, online"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Cutoff position"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", help="Offline worker threads"),
    interval: Optional[int] = typer.Option(None, "--interval", "-i", help="Online progress interval"),
    n_negatives: int = typer.Option(100, "--negatives-per-user", help="Sampled negatives when no file is given"),
    seed: int = typer.Option(42, "--seed", help="Negative sampling seed"),
) -> None:
    """Evaluate the item popularity baseline on a dataset."""
    from topkeval.data.interactions import InteractionMatrix
    from topkeval.data.loaders import DataLoader
    from topkeval.data.splits import sample_negatives
    from topkeval.evaluation.evaluator import TopKEvaluator
    from topkeval.exceptions import TopKEvalError
    from topkeval.logging_utils import setup_logging
    from topkeval.models.popularity import ItemPopularity

    setup_logging()

    if mode not in ("offline", "online"):
        console.print(f"[red]✗ Unknown mode: {mode}[/red]")
        raise typer.Exit(1)

    if test_file is None and negatives_file is None:
        console.print("[red]✗ Provide --test or --negatives[/red]")
        raise typer.Exit(1)

    console.print("[blue]Loading data...[/blue]")

    loader = DataLoader(data_path)
    train_ratings = loader.load_ratings(train_file)

    negatives = None
    test_ratings = []
    if negatives_file is not None:
        negatives, test_ratings = loader.load_negatives(negatives_file)
    if test_file is not None:
        test_ratings = loader.load_ratings(test_file)

    if mode == "online":
        test_ratings = sorted(test_ratings, key=lambda r: r.timestamp)

    user_count = max([r.user_id for r in train_ratings + test_ratings], default=-1) + 1
    item_count = max([r.item_id for r in train_ratings + test_ratings], default=-1) + 1
    train = InteractionMatrix.from_ratings(train_ratings, user_count, item_count)

    if negatives is None:
        negatives = sample_negatives(train, n_negatives, seed=seed, exclude=test_ratings)

    console.print(
        f"[green]✓ Loaded {len(train_ratings)} train / {len(test_ratings)} test ratings "
        f"({user_count} users, {item_count} items)[/green]"
    )

    model = ItemPopularity(train).fit()
    evaluator = TopKEvaluator(model, train, negatives, top_k=top_k, thread_num=threads)

    start = time.perf_counter()
    try:
        if mode == "offline":
            results = evaluator.evaluate(test_ratings)
        else:
            report = evaluator.evaluate_online(test_ratings, interval=interval)
            results = report.results
    except TopKEvalError as e:
        console.print(f"[red]✗ Evaluation failed: {e}[/red]")
        raise typer.Exit(1)
    elapsed = time.perf_counter() - start

    table = Table(title=f"{mode.capitalize()} Evaluation Results (K={evaluator.top_k})", min_width=60)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    for metric, value in results.means().items():
        table.add_row(metric, f"{value:.4f}")
    table.add_row("instances", str(len(results)))
    table.add_row("seconds", f"{elapsed:.2f}")

    console.print(table)


@app.command()
def info() -> None:
    """Show effective configuration."""
    from topkeval.config import get_settings

    settings = get_settings()

    table = Table(title="topkeval Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Top K", str(settings.top_k))
    table.add_row("Threads", str(settings.thread_num))
    table.add_row("Ignore Train (reserved)", str(settings.ignore_train))
    table.add_row("Online Interval", str(settings.interval))
    table.add_row("Max Iter Online (reserved)", str(settings.max_iter_online))
    table.add_row("Breakdown Intervals", str(settings.breakdown_intervals))
    table.add_row("Data Path", str(settings.data_path))
    table.add_row("Log Level", settings.log_level)

    console.print(table)


if __name__ == "__main__":
    app()
