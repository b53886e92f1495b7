from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Sequence

from .models import POINTS, ExportError, FlipbookOptions, WorkbookReadError
from .selftest import run_self_tests
from .state import FlipbookState
from .workbook import read_workbook, resolve_workbook_path, sample_sheets, write_workbook

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def _point_label(value: str) -> str:
    point = value.strip().upper()
    if point not in POINTS:
        raise argparse.ArgumentTypeError(f"unknown point '{value}' (expected one of {', '.join(POINTS)})")
    return point


def _add_view_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--raw", action="store_true", help="Show raw series instead of smoothed ones.")
    parser.add_argument(
        "--auto-axes",
        action="store_true",
        help="Let the axes follow the current point instead of locking them across points.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wireflip",
        description="Flip through per-point wire motion charts.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    view_parser = subparsers.add_parser("view", help="Open the interactive flipbook window.")
    view_parser.add_argument("workbook", nargs="?", type=Path, help="Workbook path (default: processed_intermediate_data.xlsx).")
    view_parser.add_argument("--point", type=_point_label, default=POINTS[0], help="Point shown first.")
    view_parser.add_argument("--output", type=Path, default=Path("."), help="Directory for PNG exports.")
    view_parser.add_argument("--dpi", type=int, default=100, help="Figure resolution (50-300).")
    _add_view_flags(view_parser)

    console_parser = subparsers.add_parser("console", help="Run the text flipbook console.")
    console_parser.add_argument("workbook", nargs="?", type=Path)
    console_parser.add_argument("--output", type=Path, default=Path("."), help="Directory for exports.")

    export_parser = subparsers.add_parser("export", help="Write flipbook charts to files.")
    export_parser.add_argument("workbook", nargs="?", type=Path)
    export_parser.add_argument("--output", type=Path, required=True, help="Destination directory.")
    target = export_parser.add_mutually_exclusive_group()
    target.add_argument("--point", type=_point_label, help="Export a single point (default: the first).")
    target.add_argument("--all", action="store_true", help="Export every point.")
    export_parser.add_argument("--format", choices=("png", "html"), default="png", help="Output format.")
    export_parser.add_argument("--dpi", type=int, default=100, help="PNG resolution (50-300).")
    _add_view_flags(export_parser)

    summary_parser = subparsers.add_parser("summary", help="Print row counts and global domains.")
    summary_parser.add_argument("workbook", nargs="?", type=Path)
    summary_parser.add_argument("--raw", action="store_true", help="Summarise raw series instead of smoothed ones.")

    subparsers.add_parser("selftest", help="Run the built-in self-tests.")

    sample_parser = subparsers.add_parser("sample", help="Write a synthetic workbook in the expected layout.")
    sample_parser.add_argument("output", type=Path, help="Destination .xlsx path.")
    sample_parser.add_argument("--steps", type=int, default=60, help="Samples per point (default: 60).")
    sample_parser.add_argument("--seed", type=int, default=0, help="Random seed for the noise.")

    return parser


def _load_state(workbook: Path | None, options: FlipbookOptions) -> FlipbookState:
    path = resolve_workbook_path(workbook)
    try:
        sheets = read_workbook(path)
    except WorkbookReadError as exc:
        raise SystemExit(str(exc)) from exc
    state = FlipbookState.from_options(options)
    state.load_workbook(sheets)
    return state


def _run_export(args: argparse.Namespace) -> int:
    options = FlipbookOptions(
        output_dir=args.output,
        start_point=args.point or POINTS[0],
        use_smoothed=not args.raw,
        lock_axes=not args.auto_axes,
        dpi=args.dpi,
    )
    state = _load_state(args.workbook, options)
    points = list(state.points) if args.all else [state.current_point]
    written: List[Path] = []
    try:
        for point in points:
            state.select_point(point)
            if args.format == "html":
                from .plotly_charts import export_html

                written.append(export_html(state, options.output_dir))
            else:
                from .mpl_charts import export_png

                written.append(export_png(state, options.output_dir, dpi=options.dpi))
    except ExportError as exc:
        logger.warning("%s", exc)
        raise SystemExit(str(exc)) from exc
    for path in written:
        print(f"Saved {path}")
    return 0


def _run_summary(args: argparse.Namespace) -> int:
    state = _load_state(args.workbook, FlipbookOptions(use_smoothed=not args.raw))
    mode = "raw" if args.raw else "smoothed"
    print(f"Rows per point ({mode}):")
    for point, count in state.row_counts().items():
        print(f"  {point}: {count}")
    domains = state.global_domains
    print("Global domains:")
    print(f"  time: [{domains.x.low:.6g}, {domains.x.high:.6g}]")
    for key, domain in domains.y.items():
        print(f"  {key}: [{domain.low:.6g}, {domain.high:.6g}]")
    return 0


def _run_selftest() -> int:
    results = run_self_tests()
    for result in results:
        print(result.describe())
    failed = [result for result in results if not result.ok]
    print(f"{len(results) - len(failed)}/{len(results)} passed")
    return 1 if failed else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "view":
        from .viewer import FlipbookViewer

        options = FlipbookOptions(
            workbook=args.workbook,
            output_dir=args.output,
            start_point=args.point,
            use_smoothed=not args.raw,
            lock_axes=not args.auto_axes,
            dpi=args.dpi,
        )
        state = _load_state(args.workbook, options)
        FlipbookViewer(state, dpi=options.dpi, export_dir=options.output_dir).show()
        return 0

    if args.command == "console":
        from .gui import FlipbookConsole

        options = FlipbookOptions(
            workbook=resolve_workbook_path(args.workbook),
            output_dir=args.output,
        )
        FlipbookConsole(options=options).launch()
        return 0

    if args.command == "export":
        return _run_export(args)

    if args.command == "summary":
        return _run_summary(args)

    if args.command == "selftest":
        return _run_selftest()

    if args.command == "sample":
        output = args.output.expanduser()
        if output.exists() and output.is_dir():
            raise SystemExit(f"Sample output must be a file path, not a directory: {output}")
        if output.suffix.lower() != ".xlsx":
            output = output.with_suffix(".xlsx")
        path = write_workbook(sample_sheets(steps=args.steps, seed=args.seed), output)
        print(f"Wrote sample workbook to {path}")
        return 0

    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
