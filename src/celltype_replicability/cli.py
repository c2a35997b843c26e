import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from .aggregate import summarize_expression
from .config import AnalysisConfig, load_config
from .ordering import UNDEFINED_POLICIES, order_cell_types, order_pretrained, order_rows_according_to_cols


def _add_order_parser(sub):
    p = sub.add_parser("order", help="Order cell types of a square AUROC matrix by average linkage")
    p.add_argument("aurocs", type=str, help="AUROC matrix CSV (first column = row labels)")
    p.add_argument("--out", type=str, required=True, help="Output CSV with the cell type order")
    p.add_argument("--linkage-out", dest="linkage_out", type=str, default=None, help="Optional CSV for the merge tree")
    p.add_argument("--na-value", dest="na_value", type=float, default=None)
    p.add_argument("--config", type=str, default=None, help="YAML/JSON analysis config")
    return p


def _add_pretrained_parser(sub):
    p = sub.add_parser("order-pretrained", help="Order a test x reference AUROC matrix")
    p.add_argument("aurocs", type=str, help="AUROC matrix CSV (rows=test clusters, cols=reference clusters)")
    p.add_argument("--out", type=str, required=True, help="Output CSV with the reordered matrix")
    p.add_argument("--alpha-col", dest="alpha_col", type=float, default=None)
    p.add_argument("--alpha-row", dest="alpha_row", type=float, default=None)
    p.add_argument("--undefined", choices=UNDEFINED_POLICIES, default=None, help="Placement of rows without mass")
    p.add_argument("--config", type=str, default=None, help="YAML/JSON analysis config")
    return p


def _add_rows_parser(sub):
    p = sub.add_parser("order-rows", help="Order rows of an AUROC matrix along its (fixed) column order")
    p.add_argument("aurocs", type=str, help="AUROC matrix CSV (columns already in display order)")
    p.add_argument("--out", type=str, required=True, help="Output CSV with the row order")
    p.add_argument("--alpha", type=float, default=None)
    p.add_argument("--undefined", choices=UNDEFINED_POLICIES, default=None, help="Placement of rows without mass")
    p.add_argument("--config", type=str, default=None, help="YAML/JSON analysis config")
    return p


def _add_summarize_parser(sub):
    p = sub.add_parser("summarize", help="Average expression of a gene set per cell type across studies")
    p.add_argument("--expr", required=True, type=str, help="Expression matrix CSV (rows=genes, cols=samples)")
    p.add_argument("--meta", required=True, type=str, help="Sample metadata CSV")
    p.add_argument("--genes", type=str, default=None, help="Text file with one gene per line")
    p.add_argument("--gene", dest="gene_list", action="append", default=None, help="Repeat for multiple genes")
    p.add_argument("--out", required=True, type=str, help="Output CSV (gene, cell_type, average_expression, percent_expressing)")
    p.add_argument("--sample-col", dest="sample_col", type=str, default="sample")
    p.add_argument("--study-col", dest="study_col", type=str, default="study")
    p.add_argument("--celltype-col", dest="celltype_col", type=str, default="cell_type")
    p.add_argument("--no-normalize", dest="no_normalize", action="store_true", help="Data are already normalized")
    p.add_argument("--expressing-only", dest="expressing_only", action="store_true")
    p.add_argument("--scale", action="store_true", help="z-score each gene across clusters")
    p.add_argument("--config", type=str, default=None, help="YAML/JSON analysis config")
    return p


def _read_genes(args) -> list:
    genes = list(args.gene_list or [])
    if args.genes:
        lines = Path(args.genes).read_text(encoding="utf-8").splitlines()
        genes += [ln.strip() for ln in lines if ln.strip()]
    return genes


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    ap = argparse.ArgumentParser(prog="celltype-replicability", description="Order AUROC matrices and summarize cross-study expression")
    ap.add_argument("--verbose", action="store_true")
    sub = ap.add_subparsers(dest="cmd", required=True)
    _add_order_parser(sub)
    _add_pretrained_parser(sub)
    _add_rows_parser(sub)
    _add_summarize_parser(sub)
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    cfg = load_config(args.config) if args.config else AnalysisConfig()

    if args.cmd == "order":
        aurocs = pd.read_csv(args.aurocs, index_col=0)
        na_value = cfg.ordering.na_value if args.na_value is None else args.na_value
        ordering = order_cell_types(aurocs, na_value=na_value)
        out = pd.DataFrame({"position": range(len(ordering.order)), "cell_type": ordering.order})
        out.to_csv(args.out, index=False)
        print(f"wrote {args.out} with {len(out)} cell types")
        if args.linkage_out:
            tree = pd.DataFrame(ordering.linkage, columns=["left", "right", "height", "size"])
            tree.to_csv(args.linkage_out, index=False)
            print(f"wrote {args.linkage_out} with {len(tree)} merges")
        return 0

    if args.cmd == "order-pretrained":
        aurocs = pd.read_csv(args.aurocs, index_col=0)
        alpha_col = cfg.ordering.alpha_col if args.alpha_col is None else args.alpha_col
        alpha_row = cfg.ordering.alpha_row if args.alpha_row is None else args.alpha_row
        undefined = cfg.ordering.undefined if args.undefined is None else args.undefined
        ordering = order_pretrained(aurocs, alpha_col=alpha_col, alpha_row=alpha_row, undefined=undefined)
        out = ordering.apply(aurocs)
        out.to_csv(args.out)
        print(f"wrote {args.out} with {out.shape[0]} rows x {out.shape[1]} columns")
        return 0

    if args.cmd == "order-rows":
        aurocs = pd.read_csv(args.aurocs, index_col=0)
        alpha = cfg.ordering.alpha if args.alpha is None else args.alpha
        undefined = cfg.ordering.undefined if args.undefined is None else args.undefined
        rows = order_rows_according_to_cols(aurocs, alpha=alpha, undefined=undefined)
        out = pd.DataFrame({"position": range(len(rows)), "label": list(rows)})
        out.to_csv(args.out, index=False)
        print(f"wrote {args.out} with {len(out)} rows")
        return 0

    if args.cmd == "summarize":
        genes = _read_genes(args)
        if not genes:
            print("Provide genes with --genes or --gene", file=sys.stderr)
            return 2
        expr = pd.read_csv(args.expr, index_col=0)
        meta = pd.read_csv(args.meta)
        missing = [c for c in (args.sample_col, args.study_col, args.celltype_col) if c not in meta.columns]
        if missing:
            print(f"Metadata is missing columns: {missing}", file=sys.stderr)
            return 2
        meta = meta.set_index(meta[args.sample_col].astype(str))
        expr.columns = [str(c) for c in expr.columns]
        unlabelled = [c for c in expr.columns if c not in meta.index]
        if unlabelled:
            print(f"Metadata is missing samples: {unlabelled}", file=sys.stderr)
            return 2
        meta = meta.reindex(expr.columns)
        res = summarize_expression(
            expr,
            meta[args.study_col],
            meta[args.celltype_col],
            genes,
            cfg.summary,
            normalize_library_size=False if args.no_normalize else None,
            average_expressing_only=True if args.expressing_only else None,
            scale_expression=True if args.scale else None,
        )
        res.table.to_csv(args.out, index=False)
        print(f"wrote {args.out} with {len(res.table)} gene x cell type rows")
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
