"""
Review Insight - Amazon review export analysis

CLI entry point for analyzing exports, browsing report history and
asking questions about a stored report.
"""

import argparse
import json
import logging
import sys

from src.agents.chat import ReviewChatAgent
from src.agents.enrichment import EnrichmentAgent
from src.agents.ingestion import IngestionError
from src.orchestrator import AnalysisPipeline
from src.utils.storage import HistoryStore
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(settings.LOG_FILE, encoding="utf-8")
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Review Insight - Amazon review export analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze an export (statistics + LLM enrichment)
  python main.py analyze reviews.xlsx

  # Statistics only, no API key required
  python main.py analyze reviews.xlsx --no-llm

  # Ask about a stored report
  python main.py chat 1718000000000-abc123xyz "主要的差评原因是什么?"

  # Browse history
  python main.py history list

Note: Set GOOGLE_API_KEY environment variable for enrichment and chat.
        """
    )

    parser.add_argument(
        "--history-path",
        default=str(settings.HISTORY_PATH),
        help=f"History file (default: {settings.HISTORY_PATH})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze", help="Analyze a review export")
    analyze.add_argument("file", help="Path to the .xlsx/.csv export")
    analyze.add_argument(
        "--no-llm",
        action="store_true",
        help="Skip LLM enrichment and report baseline statistics only"
    )

    chat = commands.add_parser("chat", help="Ask a question about a stored report")
    chat.add_argument("report_id", help="History record id")
    chat.add_argument("question", help="Question to ask")

    history = commands.add_parser("history", help="Manage stored reports")
    history_commands = history.add_subparsers(dest="history_command", required=True)
    history_commands.add_parser("list", help="List stored reports")
    show = history_commands.add_parser("show", help="Print a stored report as JSON")
    show.add_argument("report_id")
    delete = history_commands.add_parser("delete", help="Delete a stored report")
    delete.add_argument("report_id")
    history_commands.add_parser("clear", help="Delete all stored reports")

    return parser


def _print_summary(record) -> None:
    analysis = record.analysis
    info = analysis.product_info
    print("=" * 60)
    print(f"Report: {record.record_id}")
    print(f"Product: {info.title} ({info.main_asin})")
    print(f"Reviews: {info.total_reviews}")
    for rank in (5, 4, 3, 2, 1):
        count = analysis.star_distribution.get(rank, 0)
        percent = analysis.star_distribution_percent.get(rank, 0)
        bar = analysis.star_distribution_text.get(rank, "")
        print(f"  {rank}星 {count:>5} ({percent}%) {bar}")
    if analysis.sentiment_analysis:
        s = analysis.sentiment_analysis
        print(f"Sentiment: +{s.positive}% / ={s.neutral}% / -{s.negative}%")
    print(f"Topics: {len(analysis.topic_clusters)}")
    print("=" * 60)


def run_analyze(args, logger) -> int:
    store = HistoryStore(args.history_path, max_records=settings.MAX_HISTORY)

    enrichment_agent = None
    if not args.no_llm:
        if not settings.GOOGLE_API_KEY:
            logger.warning("GOOGLE_API_KEY not set, running statistics only")
        else:
            enrichment_agent = EnrichmentAgent(
                api_key=settings.GOOGLE_API_KEY,
                model_name=settings.ENRICHMENT_MODEL,
                temperature=settings.ENRICHMENT_TEMPERATURE,
                max_retries=settings.ENRICHMENT_MAX_RETRIES,
                max_reviews=settings.MAX_REVIEWS_FOR_ENRICHMENT,
                max_output_tokens=settings.ENRICHMENT_MAX_OUTPUT_TOKENS
            )

    pipeline = AnalysisPipeline(storage=store, enrichment_agent=enrichment_agent)
    try:
        record = pipeline.run(args.file)
    except IngestionError as e:
        print(f"❌ {e}")
        return 1

    _print_summary(record)
    return 0


def run_chat(args, logger) -> int:
    if not settings.GOOGLE_API_KEY:
        logger.error(
            "GOOGLE_API_KEY environment variable not set. "
            "Please set it before using chat."
        )
        return 1

    store = HistoryStore(args.history_path, max_records=settings.MAX_HISTORY)
    record = store.get(args.report_id)
    if record is None:
        print(f"❌ Report not found: {args.report_id}")
        return 1

    agent = ReviewChatAgent(
        api_key=settings.GOOGLE_API_KEY,
        model_name=settings.CHAT_MODEL,
        temperature=settings.CHAT_TEMPERATURE
    )
    print(agent.ask(args.question, record.reviews, record.analysis))
    return 0


def run_history(args, logger) -> int:
    store = HistoryStore(args.history_path, max_records=settings.MAX_HISTORY)

    if args.history_command == "list":
        records = store.list()
        if not records:
            print("No stored reports")
        for r in records:
            info = r.analysis.product_info
            print(f"{r.record_id}  {r.created_at}  {r.file_name or '-'}  "
                  f"{info.main_asin}  {info.total_reviews} reviews  {info.title}")
        return 0

    if args.history_command == "show":
        record = store.get(args.report_id)
        if record is None:
            print(f"❌ Report not found: {args.report_id}")
            return 1
        print(json.dumps(record.analysis.to_dict(), ensure_ascii=False, indent=2))
        return 0

    if args.history_command == "delete":
        if not store.delete(args.report_id):
            print(f"❌ Report not found: {args.report_id}")
            return 1
        print(f"Deleted {args.report_id}")
        return 0

    store.clear()
    print("History cleared")
    return 0


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    handlers = {
        "analyze": run_analyze,
        "chat": run_chat,
        "history": run_history,
    }

    try:
        sys.exit(handlers[args.command](args, logger))

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n⚠️  Interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\n❌ Command failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
