#!/usr/bin/env python3
"""
Daily Review - Terminal dashboard, interactive recategorisation and export.
"""

import argparse
import csv
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from daylog import constants
from daylog.config import Settings
from daylog.keystore import KeyStore
from daylog.llm import LLMClient
from daylog.models import AdviceStatus, Category, NoValidEntries
from daylog.session import AnalysisSession
from daylog.utils import format_hours

logger = logging.getLogger(__name__)

ADVICE_WAIT_SECONDS = 60
BAR_WIDTH = 30


class DailyReview:
    """Interactive CLI around an AnalysisSession."""

    def __init__(
        self,
        session: AnalysisSession,
        export_dir: str = constants.DEFAULT_EXPORT_DIR,
        quiet: bool = False,
    ):
        self.session = session
        self.export_dir = Path(export_dir)
        self.quiet = quiet

    def _status(self, message: str) -> None:
        if not self.quiet:
            print(message)

    def load(self, raw_text: str, with_advice: bool = True) -> None:
        """Analyse a log. NoValidEntries propagates to the caller."""
        if self.session.client is not None:
            self._status(constants.MESSAGES["analyzing"])
        self.session.analyze(raw_text, with_advice=with_advice)

        classification = self.session.classification
        if classification and classification.used_fallback:
            self._status(constants.MESSAGES["keyword_mode"])
        else:
            self._status(constants.MESSAGES["complete"])

    def display_stats(self) -> None:
        """Print totals per category and the productivity score."""
        stats = self.session.stats

        print()
        print("=" * 70)
        print(f"  DAILY ENERGY REVIEW - {format_hours(stats.total_time)} recorded")
        print("=" * 70)

        for category in Category.ordered():
            minutes = stats.category_stats.get(category)
            if minutes:
                share = minutes / stats.total_time * 100 if stats.total_time else 0
                print(f"  {category.value}: {format_hours(minutes):>6} ({share:.0f}%)")

        print(f"  Productivity score: {stats.productivity_score}/100")
        print("-" * 70)

    def display_immersion(self) -> None:
        """Print the immersion distribution and per-category ranking."""
        stats = self.session.stats
        longest = max(stats.immersion_distribution.values(), default=0)

        print("\nImmersion distribution:")
        for level, minutes in stats.immersion_distribution.items():
            width = round(minutes / longest * BAR_WIDTH) if longest else 0
            print(f"  {'❚' * level:<5} {'█' * width} {minutes} min")

        print("\nImmersion by category:")
        if not stats.immersion_analysis:
            print(f"  {constants.MESSAGES['no_data']}")
        for rank, item in enumerate(stats.immersion_analysis, 1):
            marker = "🏆" if rank == 1 else "  "
            print(f"  {marker} {item.category.value}: avg {item.average_immersion:.1f} ({item.total_time} min)")

        print("\nEnergy transitions:")
        if not stats.transitions:
            print(f"  {constants.MESSAGES['stable_energy']}")
        for transition in stats.transitions:
            arrow = "↑" if transition.type == "increase" else "↓"
            print(
                f"  {transition.time} {arrow} {transition.from_.content} ({transition.from_.immersion})"
                f" → {transition.to.content} ({transition.to.immersion})"
            )

    def display_entries(self) -> None:
        """Print entries grouped by category."""
        print()
        grouped = self.session.grouped_entries()
        for category in Category.ordered():
            entries = grouped.get(category, [])
            if not entries:
                continue
            print(f"[{category.value}]")
            for entry in entries:
                print(f"  #{entry.id:<3} {entry.time_range} ({entry.duration} min) {entry.content} {'❚' * entry.immersion}")
        print("-" * 70)

    def display_notes(self) -> None:
        """Print thoughts and actions captured from the log."""
        if self.session.thoughts:
            print("\nThoughts:")
            for thought in self.session.thoughts:
                print(f"  > {thought}")
        if self.session.actions:
            print("\nActions:")
            for action in self.session.actions:
                print(f"  v {action}")

    def display_advice(self, wait: bool = True) -> None:
        """Print coaching advice, waiting for it if it is still running."""
        advice = self.session.advice

        if wait and advice.in_flight:
            print(f"\n{constants.MESSAGES['ai_thinking']}")
            if not self.session.wait_for_advice(ADVICE_WAIT_SECONDS):
                logger.warning("Timed out waiting for AI advice")

        print("\nAI coach:")
        if advice.status is AdviceStatus.READY:
            print(advice.text)
        elif advice.status is AdviceStatus.FAILED:
            print(f"  {constants.MESSAGES['ai_connection_failed']}: {advice.error}")
        elif advice.status is AdviceStatus.PENDING:
            print(f"  {constants.MESSAGES['ai_thinking']}")
        else:
            print(f"  {constants.MESSAGES['no_api_key']}")

    def display_dashboard(self, wait_for_advice: bool = True) -> None:
        self.display_stats()
        self.display_immersion()
        self.display_entries()
        self.display_notes()
        self.display_advice(wait=wait_for_advice)

    def edit_entry(self, entry_id: int) -> None:
        """Move a single entry to a category chosen by the user."""
        try:
            entry = self.session.find_entry(entry_id)
        except KeyError:
            print(f"Invalid entry number: {entry_id}")
            return

        print(f"\nEditing entry #{entry_id}: {entry.time_range} {entry.content}")
        print(f"  Current: {entry.category.value}")

        categories = Category.ordered()
        for i, category in enumerate(categories, 1):
            print(f"  {i}) {category.value}")

        try:
            choice_num = int(input("\nSelect category number: ").strip())
        except (ValueError, KeyboardInterrupt, EOFError):
            print("Cancelled")
            return

        if not 1 <= choice_num <= len(categories):
            print("Cancelled")
            return

        self.session.reassign(entry_id, categories[choice_num - 1])
        print(f"Updated entry #{entry_id} → {entry.category.value}")

    def build_export(self) -> dict:
        """Everything about the analysed day as plain data."""
        advice = self.session.advice
        classification = self.session.classification
        return {
            "generated_at": datetime.now().isoformat(timespec="seconds"),
            "classification_mode": classification.mode if classification else None,
            "entries": [entry.to_dict() for entry in self.session.entries],
            "thoughts": list(self.session.thoughts),
            "actions": list(self.session.actions),
            "stats": self.session.stats.to_dict(),
            "advice": advice.text if advice.status is AdviceStatus.READY else None,
        }

    def export_json(self, name: str) -> Path:
        """Export the analysis to a JSON file."""
        self.export_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.export_dir / f"{name}-daylog.json"

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.build_export(), f, indent=2, ensure_ascii=False)

        logger.info(f"Exported to {output_path}")
        return output_path

    def export_csv(self, name: str) -> Path:
        """Export entries to a CSV file."""
        self.export_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.export_dir / f"{name}-daylog.csv"

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Start", "End", "Minutes", "Category", "Immersion", "Content"])
            for entry in self.session.entries:
                writer.writerow([
                    entry.start,
                    entry.end,
                    entry.duration,
                    entry.category.value,
                    entry.immersion,
                    entry.content,
                ])

        logger.info(f"Exported to {output_path}")
        return output_path

    def interactive_review(self, name: str) -> None:
        """Run the review loop until the user exports or quits."""
        self.display_dashboard()

        while True:
            print("Commands:")
            print("  [e N] Move entry #N to another category")
            print("  [s] Show dashboard")
            print("  [x] Export and quit")
            print("  [q] Quit without saving")
            print()

            try:
                cmd = input("> ").strip().lower()
            except (KeyboardInterrupt, EOFError):
                print("\nExiting.")
                break

            if cmd == "q":
                print("Exiting without saving.")
                break

            elif cmd == "x":
                json_path = self.export_json(name)
                csv_path = self.export_csv(name)
                print("\nExported to:")
                print(f"  {json_path}")
                print(f"  {csv_path}")
                break

            elif cmd == "s":
                self.display_dashboard(wait_for_advice=False)

            elif cmd.startswith("e "):
                try:
                    entry_id = int(cmd[2:])
                except ValueError:
                    print("Invalid entry number")
                    continue
                self.edit_entry(entry_id)
                self.display_stats()

            else:
                print("Unknown command")


def resolve_api_key(settings: Settings, keystore: KeyStore, cli_key: Optional[str] = None) -> Optional[str]:
    """API key from the command line, environment, config, then key store."""
    return cli_key or settings.api_key or keystore.load()


def read_log(path: Optional[str], demo: bool = False) -> str:
    """Read log text from a file, stdin ("-") or the built-in demo."""
    if demo:
        return constants.DEMO_DATA
    if not path or path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Analyse a daily energy log: categories, immersion and trends"
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Log file to analyse ('-' or omitted reads stdin)"
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Analyse the built-in demo log"
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help=f"Config file path (default: $DAYLOG_CONFIG or {constants.DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="Gemini API key (default: $GEMINI_API_KEY, config, or saved key)"
    )
    parser.add_argument(
        "--save-key",
        action="store_true",
        help="Store the --api-key value for later runs"
    )
    parser.add_argument(
        "--clear-key",
        action="store_true",
        help="Remove the stored API key and exit"
    )
    parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Skip the remote model and use keyword categorisation"
    )
    parser.add_argument(
        "--no-advice",
        action="store_true",
        help="Do not request AI coaching advice"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON instead of the dashboard"
    )
    parser.add_argument(
        "-o", "--export",
        type=str,
        default=None,
        metavar="DIR",
        help="Export JSON and CSV to this directory"
    )
    parser.add_argument(
        "-i", "--interactive",
        action="store_true",
        help="Review and recategorise entries interactively"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    settings = Settings.load(args.config)
    keystore = KeyStore(settings.keystore_path)

    if args.clear_key:
        keystore.clear()
        return 0

    if args.save_key:
        if keystore.save(args.api_key or ""):
            print(constants.MESSAGES["key_saved"])
        else:
            print(constants.MESSAGES["key_empty"])
            return 1
        if args.file is None and not args.demo:
            return 0

    client = None
    if not args.no_llm:
        client = LLMClient.from_settings(settings, resolve_api_key(settings, keystore, args.api_key))

    try:
        raw_text = read_log(args.file, demo=args.demo)
    except OSError as e:
        logger.error(f"Cannot read log: {e}")
        return 1

    session = AnalysisSession(settings, client=client)
    review = DailyReview(
        session,
        export_dir=args.export or constants.DEFAULT_EXPORT_DIR,
        quiet=args.json,
    )
    name = datetime.now().strftime("%Y-%m-%d")

    with session:
        try:
            review.load(raw_text, with_advice=not args.no_advice)
        except NoValidEntries as e:
            print(f"分析失敗: {e}", file=sys.stderr)
            return 1

        if args.interactive:
            review.interactive_review(name)
            return 0

        if args.json:
            session.wait_for_advice(ADVICE_WAIT_SECONDS)
            print(json.dumps(review.build_export(), indent=2, ensure_ascii=False))
        else:
            review.display_dashboard()

        if args.export:
            review.export_json(name)
            review.export_csv(name)

    return 0


if __name__ == "__main__":
    sys.exit(main())
