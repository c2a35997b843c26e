import numpy as np
import pandas as pd

from celltype_replicability.cli import main as cli_main


def _write_aurocs(path) -> pd.DataFrame:
    labels = ["A|x", "B|y", "B|x", "A|y"]
    values = np.array(
        [
            [1.0, 0.2, 0.9, 0.3],
            [0.2, 1.0, 0.1, 0.8],
            [0.9, 0.1, 1.0, 0.2],
            [0.3, 0.8, 0.2, 1.0],
        ]
    )
    df = pd.DataFrame(values, index=labels, columns=labels)
    df.to_csv(path)
    return df


def test_order_cli_writes_order_and_merge_tree(tmp_path, capsys):
    _write_aurocs(tmp_path / "aurocs.csv")
    out = tmp_path / "order.csv"
    tree = tmp_path / "tree.csv"
    rc = cli_main(["order", str(tmp_path / "aurocs.csv"), "--out", str(out), "--linkage-out", str(tree)])
    assert rc == 0
    order = pd.read_csv(out)
    assert sorted(order["cell_type"]) == ["A|x", "A|y", "B|x", "B|y"]
    assert {order["cell_type"].iloc[0], order["cell_type"].iloc[1]} in ({"A|x", "B|x"}, {"A|y", "B|y"})
    assert len(pd.read_csv(tree)) == 3
    assert "wrote" in capsys.readouterr().out


def test_order_pretrained_cli_reorders_matrix(tmp_path):
    aurocs = pd.DataFrame([[0.1, 0.9], [0.9, 0.2]], index=["T|y", "T|x"], columns=["R|a", "R|b"])
    aurocs.to_csv(tmp_path / "pre.csv")
    out = tmp_path / "pre_ordered.csv"
    rc = cli_main(["order-pretrained", str(tmp_path / "pre.csv"), "--out", str(out)])
    assert rc == 0
    got = pd.read_csv(out, index_col=0)
    assert list(got.index) == ["T|x", "T|y"]


def test_summarize_cli_with_config(tmp_path):
    expr = pd.DataFrame(
        {"s1": [1.0, 0.0], "s2": [2.0, 5.0], "s3": [3.0, 0.0], "s4": [4.0, 7.0]},
        index=["g1", "g2"],
    )
    expr.to_csv(tmp_path / "expr.csv")
    pd.DataFrame(
        {"sample": ["s4", "s3", "s2", "s1"], "study": ["B", "A", "B", "A"], "cell_type": ["Y", "Y", "X", "X"]}
    ).to_csv(tmp_path / "meta.csv", index=False)
    (tmp_path / "genes.txt").write_text("g1\n\ng2\n", encoding="utf-8")
    (tmp_path / "cfg.yaml").write_text("summary:\n  normalize_library_size: false\n", encoding="utf-8")

    out = tmp_path / "summary.csv"
    rc = cli_main(
        [
            "summarize",
            "--expr", str(tmp_path / "expr.csv"),
            "--meta", str(tmp_path / "meta.csv"),
            "--genes", str(tmp_path / "genes.txt"),
            "--config", str(tmp_path / "cfg.yaml"),
            "--out", str(out),
        ]
    )
    assert rc == 0
    table = pd.read_csv(out)
    assert np.allclose(table["average_expression"].to_numpy(), [1.5, 3.5, 2.5, 3.5])
    assert np.allclose(table["percent_expressing"].to_numpy(), [1.0, 1.0, 0.5, 0.5])


def test_summarize_cli_requires_genes(tmp_path, capsys):
    rc = cli_main(["summarize", "--expr", "x.csv", "--meta", "m.csv", "--out", str(tmp_path / "o.csv")])
    assert rc == 2
    assert "--gene" in capsys.readouterr().err


def _write_zero_row_aurocs(path) -> None:
    pd.DataFrame([[0.9, 0.1], [0.0, 0.0]], index=["T|x", "T|z"], columns=["R|a", "R|b"]).to_csv(path)


def test_order_pretrained_cli_places_zero_rows_from_config(tmp_path):
    _write_zero_row_aurocs(tmp_path / "pre.csv")
    out = tmp_path / "pre_ordered.csv"

    assert cli_main(["order-pretrained", str(tmp_path / "pre.csv"), "--out", str(out)]) == 0
    assert list(pd.read_csv(out, index_col=0).index) == ["T|x", "T|z"]

    (tmp_path / "cfg.yaml").write_text("ordering:\n  undefined: first\n", encoding="utf-8")
    rc = cli_main(["order-pretrained", str(tmp_path / "pre.csv"), "--out", str(out), "--config", str(tmp_path / "cfg.yaml")])
    assert rc == 0
    assert list(pd.read_csv(out, index_col=0).index) == ["T|z", "T|x"]


def test_order_rows_cli_uses_alpha_and_undefined(tmp_path):
    aurocs = pd.DataFrame(
        [[0.1, 0.9], [0.9, 0.1], [0.0, 0.0]], index=["r1", "r2", "r0"], columns=["c1", "c2"]
    )
    aurocs.to_csv(tmp_path / "m.csv")
    out = tmp_path / "rows.csv"

    assert cli_main(["order-rows", str(tmp_path / "m.csv"), "--out", str(out)]) == 0
    assert list(pd.read_csv(out)["label"]) == ["r2", "r1", "r0"]

    assert cli_main(["order-rows", str(tmp_path / "m.csv"), "--out", str(out), "--undefined", "first"]) == 0
    assert list(pd.read_csv(out)["label"]) == ["r0", "r2", "r1"]

    # With alpha 0 every row weighs its columns equally, so input order is kept.
    (tmp_path / "cfg.json").write_text('{"ordering": {"alpha": 0.0}}', encoding="utf-8")
    assert cli_main(["order-rows", str(tmp_path / "m.csv"), "--out", str(out), "--config", str(tmp_path / "cfg.json")]) == 0
    assert list(pd.read_csv(out)["label"]) == ["r1", "r2", "r0"]


def test_summarize_cli_rejects_samples_missing_from_metadata(tmp_path, capsys):
    pd.DataFrame({"s1": [1.0], "s2": [2.0], "s3": [3.0]}, index=["g1"]).to_csv(tmp_path / "expr.csv")
    pd.DataFrame({"sample": ["s1", "s2"], "study": ["A", "B"], "cell_type": ["X", "X"]}).to_csv(
        tmp_path / "meta.csv", index=False
    )
    rc = cli_main(
        [
            "summarize",
            "--expr", str(tmp_path / "expr.csv"),
            "--meta", str(tmp_path / "meta.csv"),
            "--gene", "g1",
            "--out", str(tmp_path / "o.csv"),
        ]
    )
    assert rc == 2
    assert "s3" in capsys.readouterr().err
    assert not (tmp_path / "o.csv").exists()
