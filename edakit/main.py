"""CLI entry point: profile, scan, optionally clean, analyze and report on a CSV file."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from edakit.llm_config import SUPPORTED_PROVIDERS


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:] when None).

    Returns:
        Parsed namespace with csv_file, output_dir, auto_fix, provider,
        model, region and verbose.
    """
    parser = argparse.ArgumentParser(
        prog="edakit",
        description="Exploratory data analysis for a CSV file: column profiling, "
        "quality scan, statistics, correlations and insights in a Markdown report.",
    )
    parser.add_argument(
        "csv_file",
        help="Path to the CSV file to analyze.",
    )
    parser.add_argument(
        "--output-dir",
        default="output",
        help="Output directory for the report (default: output).",
    )
    parser.add_argument(
        "--auto-fix",
        action="store_true",
        help="Apply auto-fixable quality fixes (duplicates, missing markers) before analysis.",
    )
    parser.add_argument(
        "--provider",
        default=None,
        choices=sorted(SUPPORTED_PROVIDERS),
        help="LLM provider for the narrative summary (omit to skip the narrative).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name override (uses provider default when omitted).",
    )
    parser.add_argument(
        "--region",
        default=None,
        help="AWS region for the Bedrock provider (e.g., us-east-1).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log engine details at DEBUG level.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the analysis pipeline.

    Args:
        argv: Optional argument list for testing; uses sys.argv when None.
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate that the CSV file exists early, before heavy imports.
    if not os.path.isfile(args.csv_file):
        print(f"Error: file not found: {args.csv_file}", file=sys.stderr)
        sys.exit(1)

    try:
        from edakit.graph import build_graph
        from edakit.llm_config import llm_from_options
        from edakit.models import PipelineState

        llm = llm_from_options(args.provider, args.model, args.region)
        graph = build_graph(llm)

        initial_state: PipelineState = {
            "file_path": args.csv_file,
            "auto_fix": args.auto_fix,
            "dataset": None,
            "original_shape": None,
            "profiles": [],
            "quality_report": None,
            "cleaning_log": [],
            "analysis": None,
            "narrative": None,
            "output_dir": args.output_dir,
            "report_path": None,
            "errors": [],
            "reasoning_log": [],
        }

        os.makedirs(args.output_dir, exist_ok=True)
        result = graph.invoke(initial_state)

        report_path = result.get("report_path")
        if report_path and result.get("dataset") is not None:
            print(f"Report saved to: {report_path}")
            for err in result.get("errors") or []:
                print(f"  warning: {err}", file=sys.stderr)
        else:
            print("Error: analysis did not complete.", file=sys.stderr)
            for err in result.get("errors") or []:
                print(f"  - {err}", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        sys.exit(130)
    except Exception as exc:
        logging.getLogger(__name__).debug("Pipeline failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
