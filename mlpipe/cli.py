#!filepath: mlpipe/cli.py
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape

from mlpipe import __version__
from mlpipe.config.app_config import AppConfig
from mlpipe.dataset.context import ExecutionContext
from mlpipe.observability.instrumentation import Instrumentation
from mlpipe.utils.errors import PipelineError, UserInputError
from mlpipe.utils.logger import init_logging

app = typer.Typer(help="mlpipe Naive Bayes pipeline CLI")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def train(
        train_csv: Path,
        test_csv: Optional[Path] = typer.Argument(None),
        num_classes: Optional[int] = typer.Option(None, "--num-classes", help="覆盖配置中的 num_classes"),
        label_column: str = typer.Option("label", "--label-column"),
        lambda_: Optional[float] = typer.Option(None, "--lambda", help="Laplace 平滑常数"),
        partitions: Optional[int] = typer.Option(None, "--partitions", min=1),
        config: Optional[Path] = typer.Option(None, "--config", help="YAML 配置路径"),
):
    """
    训练 Naive Bayes 并报告 train / test 准确率
    """
    from mlpipe.workflows.naive_bayes_workflow import load_labeled_csv, run_naive_bayes

    try:
        cfg = AppConfig.load(str(config) if config else None)
        if num_classes is not None:
            cfg.model.num_classes = num_classes
        if lambda_ is not None:
            cfg.model.lambda_ = lambda_
    except (ValidationError, FileNotFoundError) as e:
        print(f"[red]invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=2)
    init_logging(cfg.log)

    try:
        train_data = load_labeled_csv(train_csv, label_column)
        test_data = load_labeled_csv(test_csv, label_column) if test_csv else None
    except UserInputError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    print(f"[green]Training Naive Bayes on {train_csv.name} "
          f"(classes={cfg.model.num_classes}, lambda={cfg.model.lambda_})[/green]")

    inst = Instrumentation()
    with ExecutionContext(cfg.execution, inst=inst) as ctx:
        try:
            result = run_naive_bayes(ctx, cfg, train_data, test_data, num_partitions=partitions)
        except PipelineError as e:
            print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)

    inst.generate_timeline_report(train_csv.name)

    print(f"Training accuracy: [bold]{result.train_accuracy:.4f}[/bold]")
    if result.test_accuracy is not None:
        print(f"Test accuracy: [bold]{result.test_accuracy:.4f}[/bold]")


if __name__ == "__main__":
    app()

# python -m mlpipe.cli train data/train.csv data/test.csv --num-classes 10
