"""Main entry point for Mercury Genie"""
import argparse
import json
import logging
import sys

from mercury_genie.config import settings

# Configure root logger from LOG_LEVEL env var before any other imports
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

from mercury_genie.components.predefined import SUGGESTED_QUESTIONS
from mercury_genie.pipeline import GeniePipeline, GenieResponse

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mercury-genie",
        description="Ask questions about the portfolio database in plain English.",
    )
    parser.add_argument("question", nargs="?", help="natural-language question")
    parser.add_argument("--explain", action="store_true", help="explain the generated SQL")
    parser.add_argument("--json", action="store_true", help="print the full response as JSON")
    parser.add_argument(
        "--suggestions", action="store_true", help="list example questions and exit"
    )
    return parser


def render_text(response: GenieResponse) -> str:
    if not response.success:
        return f"Error: {response.error}"

    lines = [f"SQL: {response.sql}", response.summary]
    if response.rows:
        columns = list(response.rows[0].keys())
        lines.append(" | ".join(columns))
        for row in response.rows[:20]:
            lines.append(" | ".join(str(row.get(c, "")) for c in columns))
        if len(response.rows) > 20:
            lines.append(f"... {len(response.rows) - 20} more rows")
    config = response.chart_config
    if config is not None:
        lines.append(
            f"Chart: {config.type} '{config.title}' x={config.x_key} y={', '.join(config.y_keys)}"
        )
        if config.takeaway:
            lines.append(f"Takeaway: {config.takeaway}")
    for item in response.explanation:
        lines.append(f"  {item.section}: {item.explanation}")
    return "\n".join(lines)


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    if args.suggestions:
        for suggestion in SUGGESTED_QUESTIONS:
            print(f"- {suggestion['question']}")
        return 0

    if not args.question:
        build_parser().print_usage(sys.stderr)
        return 2

    pipeline = GeniePipeline.from_settings(settings)
    response = pipeline.ask(args.question, explain=args.explain)

    if args.json:
        print(json.dumps(response.to_dict(), indent=2, default=str))
    else:
        print(render_text(response))
    return 0 if response.success else 1


if __name__ == "__main__":
    sys.exit(main())
