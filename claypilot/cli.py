"""Command line entry point: ``claypilot <command> [options]``."""

from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import sys
from contextlib import asynccontextmanager
from dataclasses import asdict, is_dataclass
from typing import Any, AsyncIterator

from playwright.async_api import async_playwright

from claypilot.config import ClayConfig
from claypilot.core.logger import setup_logger
from claypilot.driver.playwright_handler import PlaywrightToolHandler
from claypilot.server import serve
from claypilot.session.store import SessionStore
from claypilot.workflows.manager import WORKFLOWS, WorkflowManager, WorkflowRunResult
from claypilot.workflows.types import EnrichmentType

_COMMANDS = {
    "login": "login",
    "create-table": "create_table",
    "upload-csv": "upload_csv",
    "add-enrichment": "add_enrichment",
    "write-prompt": "write_prompt",
    "run-enrichment": "run_enrichment",
    "export": "export_results",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claypilot",
        description="Drive Clay tables through the browser UI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  claypilot login
  claypilot create-table "Leads Q3" --description "Inbound leads"
  claypilot add-enrichment t_abc123 --type email_finder --column Email --source domain
  claypilot run-enrichment t_abc123 --no-wait
  claypilot pipeline --csv leads.csv --type apollo_person --output ./out/leads.csv
  claypilot --dry-run pipeline --csv leads.csv --type email_finder
  claypilot serve --port 3001
        """,
    )
    parser.add_argument("--dry-run", action="store_true", help="Simulate every browser action")
    parser.add_argument("--headless", action="store_true", help="Run the browser without a window")
    parser.add_argument("--env-file", help="Read settings from this .env file")
    parser.add_argument("--log-level", help="Override CLAY_LOG_LEVEL")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Authenticate (manual login or stored session)")
    p.add_argument("--identity", help="Account identity to record with the session")

    p = sub.add_parser("create-table", help="Create a new table")
    p.add_argument("name", help="Table name")
    p.add_argument("--description", help="Table description")

    p = sub.add_parser("upload-csv", help="Upload a CSV file into a table")
    p.add_argument("table_id")
    p.add_argument("file", help="CSV file to upload")
    p.add_argument("--skip-duplicates", action="store_true")

    p = sub.add_parser("add-enrichment", help="Add an enrichment column")
    p.add_argument("table_id")
    p.add_argument("--type", required=True, choices=[t.value for t in EnrichmentType])
    p.add_argument("--column", required=True, help="New column name")
    p.add_argument("--source", required=True, help="Source column name")
    p.add_argument(
        "--setting",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra enrichment setting (repeatable)",
    )

    p = sub.add_parser("write-prompt", help="Add an AI prompt column")
    p.add_argument("table_id")
    p.add_argument("--column", required=True, help="New column name")
    p.add_argument("--prompt", required=True, help="Prompt text")
    p.add_argument("--source", required=True, nargs="+", help="Source column names")
    p.add_argument("--model", help="AI model, e.g. gpt-4")
    p.add_argument("--max-tokens", type=int)

    p = sub.add_parser("run-enrichment", help="Run enrichment on a table")
    p.add_argument("table_id")
    p.add_argument("--columns", nargs="*", help="Only run these columns")
    p.add_argument("--no-wait", action="store_true", help="Return once the run has started")

    p = sub.add_parser("export", help="Export a table")
    p.add_argument("table_id")
    p.add_argument("output", help="Output file path")
    p.add_argument("--format", choices=["csv", "json"], default="csv")
    p.add_argument("--columns", nargs="*", help="Only export these columns")

    p = sub.add_parser("pipeline", help="login, create, upload, enrich, run and export in one go")
    p.add_argument("--csv", required=True, help="Input CSV file")
    p.add_argument("--type", required=True, choices=[t.value for t in EnrichmentType])
    p.add_argument("--name", default=f"Clay Enrichment {datetime.date.today().isoformat()}")
    p.add_argument("--source", default="email", help="Source column for the enrichment")
    p.add_argument("--output", help="Export the enriched table here")

    p = sub.add_parser("session", help="Inspect or clear the stored session")
    p.add_argument("action", choices=["info", "clear"])

    sub.add_parser("workflows", help="List available workflows")

    p = sub.add_parser("serve", help="Serve the progress API and WebSocket")
    p.add_argument("--host", help="Override WEBAPP_HOST")
    p.add_argument("--port", type=int, help="Override WEBAPP_PORT")
    return parser


def _settings(pairs: list[str]) -> dict[str, str] | None:
    settings = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Invalid --setting (expected KEY=VALUE): {pair}")
        settings[key.strip()] = value.strip()
    return settings or None


def payload_for(args: argparse.Namespace) -> dict[str, Any] | None:
    """Translate parsed arguments into the workflow's input payload."""
    if args.command == "login":
        return {"identity": args.identity} if args.identity else None
    if args.command == "create-table":
        return {"table_name": args.name, "description": args.description}
    if args.command == "upload-csv":
        return {"table_id": args.table_id, "file_path": args.file, "skip_duplicates": args.skip_duplicates}
    if args.command == "add-enrichment":
        return {
            "table_id": args.table_id,
            "enrichment": {
                "type": args.type,
                "column_name": args.column,
                "source_column": args.source,
                "settings": _settings(args.setting),
            },
        }
    if args.command == "write-prompt":
        return {
            "table_id": args.table_id,
            "prompt": {
                "column_name": args.column,
                "prompt": args.prompt,
                "source_columns": args.source,
                "model": args.model,
                "max_tokens": args.max_tokens,
            },
        }
    if args.command == "run-enrichment":
        return {
            "table_id": args.table_id,
            "columns": args.columns or None,
            "wait_for_completion": not args.no_wait,
        }
    if args.command == "export":
        return {
            "table_id": args.table_id,
            "output_path": args.output,
            "format": args.format,
            "include_columns": args.columns or None,
        }
    raise ValueError(f"No workflow for command: {args.command}")


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    return value


def _print_result(result: WorkflowRunResult) -> None:
    if result.success:
        print(json.dumps(_jsonable(result.data), indent=2, default=str))
        return
    print(f"\nFailed: {result.error}", file=sys.stderr)
    if result.error_kind is not None:
        print(f"  Kind: {result.error_kind.value}", file=sys.stderr)
    if result.screenshot_path:
        print(f"  Screenshot: {result.screenshot_path}", file=sys.stderr)


@asynccontextmanager
async def browser_handler(config: ClayConfig) -> AsyncIterator[PlaywrightToolHandler | None]:
    """Launch Chromium on the persistent profile; yields None in dry-run."""
    if config.options.dry_run:
        yield None
        return

    profile = SessionStore(settings=config.session).ensure_profile_directory()
    async with async_playwright() as pw:
        context = await pw.chromium.launch_persistent_context(
            str(profile),
            headless=config.options.headless,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
            viewport={"width": 1280, "height": 900},
        )
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            yield PlaywrightToolHandler(
                page, config.options.screenshot_dir, tool_prefix=config.options.tool_prefix
            )
        finally:
            await context.close()


async def run_command(args: argparse.Namespace, config: ClayConfig) -> int:
    async with browser_handler(config) as handler:
        manager = WorkflowManager(config)
        if handler is not None:
            manager.connect(handler)
        try:
            if args.command == "serve":
                await serve(manager, config.server, config.options.log_level)
                return 0

            if args.command == "pipeline":
                pipeline = await manager.run_full_pipeline(
                    {
                        "table_name": args.name,
                        "csv_path": args.csv,
                        "enrichment_type": args.type,
                        "source_column": args.source,
                        "output_path": args.output,
                    }
                )
                if not pipeline.success:
                    failed = pipeline.steps[pipeline.failed_step]
                    print(f"\nPipeline failed at step: {pipeline.failed_step}", file=sys.stderr)
                    _print_result(failed)
                    return 1
                print("\nPipeline completed successfully!")
                return 0

            result = await manager.execute(_COMMANDS[args.command], payload_for(args))
            _print_result(result)
            return 0 if result.success else 1
        finally:
            await manager.close()


def _session_command(action: str, config: ClayConfig) -> int:
    store = SessionStore(settings=config.session)
    if action == "clear":
        store.clear_session()
        print("Session cleared")
        return 0

    info = store.get_session_info()
    if not info.exists:
        print("No active session found")
        print("Run `claypilot login` to authenticate")
        return 1
    print("Session status:")
    print(f"  Valid: {'Yes' if store.is_session_valid() else 'No (expired)'}")
    print(f"  Age: {info.age_days} days")
    if info.identity:
        print(f"  Identity: {info.identity}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = ClayConfig.from_env(args.env_file)
    if args.dry_run:
        config.options.dry_run = True
    if args.headless:
        config.options.headless = True
    if args.log_level:
        config.options.log_level = args.log_level
    setup_logger("claypilot", config.options.log_level)

    if args.command == "serve":
        if args.host:
            config.server.host = args.host
        if args.port:
            config.server.port = args.port

    if args.command == "session":
        return _session_command(args.action, config)
    if args.command == "workflows":
        print("Available workflows:\n")
        for workflow in WORKFLOWS.values():
            print(f"  {workflow.name:<15} - {workflow.description}")
        return 0

    try:
        return asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
