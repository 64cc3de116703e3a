# tests/workflows/test_naive_bayes_workflow.py
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from mlpipe.cli import app
from mlpipe.config.app_config import AppConfig
from mlpipe.config.model_config import NaiveBayesConfig
from mlpipe.pipeline.transformer import TransformerChain
from mlpipe.utils.errors import DegenerateClassError, UserInputError
from mlpipe.workflows.naive_bayes_workflow import load_labeled_csv, run_naive_bayes


@pytest.fixture
def app_cfg():
    return AppConfig(model=NaiveBayesConfig(num_classes=3, lambda_=1.0))


def _write_csv(path, features, labels):
    df = pd.DataFrame(np.vstack(features), columns=[f"f{i}" for i in range(len(features[0]))])
    df["label"] = labels
    df.to_csv(path, index=False)
    return path


def test_run_naive_bayes_end_to_end(ctx, app_cfg, count_corpus):
    features, labels = count_corpus
    train = (features[:45], labels[:45])
    test = (features[45:], labels[45:])

    result = run_naive_bayes(ctx, app_cfg, train, test, num_partitions=3)

    assert isinstance(result.pipeline, TransformerChain)
    assert result.pipeline.stage_name.endswith("NaiveBayesModel then MaxClassifier")
    assert result.train_accuracy > 0.9
    assert result.test_accuracy > 0.8


def test_run_naive_bayes_without_test_split(ctx, app_cfg, count_corpus):
    result = run_naive_bayes(ctx, app_cfg, count_corpus)

    assert result.test_accuracy is None


def test_run_naive_bayes_surfaces_degenerate_class(ctx, toy_training):
    cfg = AppConfig(model=NaiveBayesConfig(num_classes=3))

    with pytest.raises(DegenerateClassError):
        run_naive_bayes(ctx, cfg, toy_training)


def test_load_labeled_csv(tmp_path, toy_training):
    features, labels = toy_training
    path = _write_csv(tmp_path / "train.csv", features, labels)

    x, y = load_labeled_csv(path)

    assert y == labels
    assert np.allclose(np.vstack(x), np.vstack(features))


def test_load_labeled_csv_missing_column(tmp_path, toy_training):
    features, labels = toy_training
    path = _write_csv(tmp_path / "train.csv", features, labels)

    with pytest.raises(UserInputError):
        load_labeled_csv(path, label_column="target")


@pytest.mark.parametrize(
    "label_cells",
    [
        ["0.0", "1.7"],  # 非整数不能被截断成 1
        ["0", ""],  # 空单元格 → NaN
        ["0", "cat"],
    ],
)
def test_load_labeled_csv_rejects_non_integral_labels(tmp_path, label_cells):
    path = tmp_path / "train.csv"
    rows = [f"1.0,0.0,{label}" for label in label_cells]
    path.write_text("f0,f1,label\n" + "\n".join(rows) + "\n")

    with pytest.raises(UserInputError, match="'label'"):
        load_labeled_csv(path)


def test_load_labeled_csv_accepts_integral_float_labels(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("f0,f1,label\n1.0,0.0,0.0\n0.0,1.0,1.0\n")

    _, y = load_labeled_csv(path)

    assert y == [0, 1]
    assert all(type(label) is int for label in y)


def test_load_labeled_csv_non_numeric_feature(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("f0,f1,label\n1.0,abc,0\n")

    with pytest.raises(UserInputError):
        load_labeled_csv(path)


def test_load_labeled_csv_missing_file(tmp_path):
    with pytest.raises(UserInputError):
        load_labeled_csv(tmp_path / "absent.csv")


# ------------------------------------------------------------
# CLI
# ------------------------------------------------------------
@pytest.fixture
def cli_config(tmp_path):
    f = tmp_path / "cli.yml"
    f.write_text(
        yaml.safe_dump(
            {
                "log": {"dir": str(tmp_path / "logs")},
                "execution": {"max_workers": 1, "default_parallelism": 2},
                "model": {"num_classes": 3},
            }
        )
    )
    return f


def test_cli_version():
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_cli_train(tmp_path, cli_config, count_corpus):
    features, labels = count_corpus
    train_csv = _write_csv(tmp_path / "train.csv", features[:45], labels[:45])
    test_csv = _write_csv(tmp_path / "test.csv", features[45:], labels[45:])

    result = CliRunner().invoke(
        app, ["train", str(train_csv), str(test_csv), "--config", str(cli_config)]
    )

    assert result.exit_code == 0, result.output
    assert "Training accuracy" in result.output
    assert "Test accuracy" in result.output


def test_cli_train_bad_label_column(tmp_path, cli_config, toy_training):
    features, labels = toy_training
    train_csv = _write_csv(tmp_path / "train.csv", features, labels)

    result = CliRunner().invoke(
        app, ["train", str(train_csv), "--label-column", "y", "--config", str(cli_config)]
    )

    assert result.exit_code == 2


def test_cli_train_degenerate_class(tmp_path, cli_config, toy_training):
    features, labels = toy_training
    train_csv = _write_csv(tmp_path / "train.csv", features, labels)

    result = CliRunner().invoke(
        app, ["train", str(train_csv), "--config", str(cli_config)]
    )

    assert result.exit_code == 1
    assert "DegenerateClassError" in result.output


@pytest.mark.parametrize(
    "override",
    [
        ["--num-classes", "0"],
        ["--lambda=-1"],
    ],
)
def test_cli_train_invalid_override_is_user_error(tmp_path, cli_config, toy_training, override):
    features, labels = toy_training
    train_csv = _write_csv(tmp_path / "train.csv", features, labels)

    result = CliRunner().invoke(
        app, ["train", str(train_csv), "--config", str(cli_config), *override]
    )

    assert result.exit_code == 2
    assert "invalid configuration" in result.output
    assert not isinstance(result.exception, ValueError)


def test_cli_train_fractional_label_is_user_error(tmp_path, cli_config):
    train_csv = tmp_path / "train.csv"
    train_csv.write_text("f0,f1,label\n1.0,0.0,0.0\n0.0,1.0,1.7\n")

    result = CliRunner().invoke(
        app, ["train", str(train_csv), "--config", str(cli_config)]
    )

    assert result.exit_code == 2
    assert "label column 'label'" in result.output
