"""Entry point: python -m escalate

Publish escalations to Jira from the command line.

Usage:
    python -m escalate post 7 logs/app.log screenshot.png
    python -m escalate retry 7 logs/app.log screenshot.png
    python -m escalate history 7
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from escalate.errors import PipelineError
from escalate.pipeline import PostingPipeline
from escalate.results import OutcomeStatus, PostResult
from src.database import close_db, init_db

_SYMBOLS = {
    OutcomeStatus.SUCCESS: "✅",
    OutcomeStatus.SKIPPED: "⏭️",
    OutcomeStatus.FAILURE: "❌",
}


def _print_result(result: PostResult) -> None:
    comment = result.comment
    detail = comment.remote_id or ""
    if comment.status is OutcomeStatus.FAILURE:
        detail = f"{comment.error_kind.value}: {comment.message}"
    print(f"\n  {_SYMBOLS[comment.status]} comment {detail}".rstrip())
    for attachment in result.attachments:
        line = f"  {_SYMBOLS[attachment.status]} {attachment.file}"
        if attachment.failed:
            line += f" ({attachment.error_kind.value}: {attachment.message})"
        print(line)
    print(f"\n  Status: {result.final_status.value}")
    print(f"  {result.summary()}")


async def _run(args: argparse.Namespace) -> int:
    await init_db()
    pipeline = PostingPipeline()
    try:
        if args.command == "history":
            entries = await pipeline.audit.history(args.escalation_id)
            if not entries:
                print(f"No audit entries for escalation {args.escalation_id}")
            for entry in entries:
                print(f"  {entry.created_at:%Y-%m-%d %H:%M:%S}  {entry.action.value:<22} {entry.details or ''}")
            return 0

        if args.command == "post":
            result = await pipeline.post_escalation(args.escalation_id, args.files)
        else:
            result = await pipeline.retry_post_escalation(args.escalation_id, args.files)
        _print_result(result)
        return 0 if result.succeeded else 1
    except PipelineError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 2
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="escalate", description="Publish escalations to Jira")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("post", "Post a draft or failed escalation"),
        ("retry", "Retry a failed escalation, skipping what already succeeded"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("escalation_id", type=int)
        cmd.add_argument("files", nargs="*", help="Files to attach, in upload order")

    history = sub.add_parser("history", help="Show the audit trail")
    history.add_argument("escalation_id", type=int)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
