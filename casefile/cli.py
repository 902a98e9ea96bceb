"""
Command-line tooling for authored content.

    casefile validate content/
    casefile summary content/
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_config
from .content.loader import load_catalog_dir
from .content.validation import IssueSeverity, check_catalog, has_errors
from .errors import ContentIntegrityError
from .state.catalog import ContentCatalog

console = Console()
logger = logging.getLogger(__name__)


SEVERITY_STYLE = {
    IssueSeverity.ERROR: "bold red",
    IssueSeverity.WARNING: "yellow",
}


def _load(content_dir: Path) -> ContentCatalog | None:
    try:
        return load_catalog_dir(content_dir)
    except ContentIntegrityError as exc:
        console.print(Panel(str(exc), title="Content failed to load", border_style="red"))
        return None


def cmd_validate(args: argparse.Namespace) -> int:
    catalog = _load(args.content)
    if catalog is None:
        return 1

    issues = check_catalog(catalog)
    if not issues:
        console.print(
            f"[green]OK[/green] {len(catalog.quests)} quests, "
            f"{len(catalog.npc_ids)} NPCs, no issues"
        )
        return 0

    table = Table(title="Content issues")
    table.add_column("Severity")
    table.add_column("Source")
    table.add_column("Issue")
    for issue in issues:
        style = SEVERITY_STYLE[issue.severity]
        table.add_row(f"[{style}]{issue.severity.value}[/{style}]", issue.source, issue.message)
    console.print(table)

    if has_errors(issues):
        return 1
    return 1 if args.strict else 0


def cmd_summary(args: argparse.Namespace) -> int:
    catalog = _load(args.content)
    if catalog is None:
        return 1

    quests = Table(title="Quests")
    quests.add_column("Quest")
    quests.add_column("Phases")
    quests.add_column("Clues", justify="right")
    quests.add_column("Evidence available", justify="right")
    for quest in catalog.quests:
        total = sum(clue.strength for clue in quest.available_clues.values())
        quests.add_row(
            quest.id,
            " → ".join(quest.phases),
            str(len(quest.available_clues)),
            f"{total:g}",
        )
    console.print(quests)

    conversations = Table(title="Conversations")
    conversations.add_column("NPC")
    conversations.add_column("Conversation")
    conversations.add_column("Category")
    conversations.add_column("Nodes", justify="right")
    for npc_id in catalog.npc_ids:
        for tree in catalog.conversations_for(npc_id):
            conversations.add_row(
                npc_id,
                tree.conversation_id,
                tree.category.value,
                str(len(tree.nodes)),
            )
    console.print(conversations)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="casefile - investigation content tools")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("."),
        help="Directory holding .casefile_config.json",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Check content for broken references")
    validate.add_argument("content", type=Path, help="Content directory (quests/, dialogues/)")
    validate.add_argument("--strict", action="store_true", help="Fail on warnings too")
    validate.set_defaults(func=cmd_validate)

    summary = sub.add_parser("summary", help="List quests and conversations")
    summary.add_argument("content", type=Path, help="Content directory (quests/, dialogues/)")
    summary.set_defaults(func=cmd_summary)

    args = parser.parse_args(argv)

    config = load_config(args.config_dir)
    logging.basicConfig(
        level=getattr(logging, config.get("log_level", "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
