from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from shutil import copy2

from docplan.adapters.docx_adapter import DocxDocument
from docplan.changelog import write_json, write_txt
from docplan.errors import DocumentAccessError, PlanParseError, UnsafePlanError
from docplan.pipeline import build_payload, run_cycle
from docplan.rules.load_rules import load_engine_config


def _build_llm(args):
    from docplan.llm import ClaudeClient, ClaudePlanner, ClaudeContentGenerator, LLMConfig

    client = ClaudeClient(LLMConfig(api_key=args.anthropic_api_key, model=args.llm_model))
    return ClaudePlanner(client, max_suggestions=args.max_suggestions), ClaudeContentGenerator(client)


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        prog="docplan-edit",
        description="Apply a batch of paragraph edits (modify/insert/delete/move) to a .docx document"
    )
    ap.add_argument("input_docx", help="Path to input .docx")
    ap.add_argument("--out", default="./docplan_out", help="Output directory")
    ap.add_argument("--plan", help="Path to a JSON plan document (list of actions)")
    ap.add_argument("--limits", help="YAML file overriding the safety limits")
    ap.add_argument("--dry-run", action="store_true", help="Validate and schedule only; do not write the document")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    # LLM options
    llm_group = ap.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--use-llm",
        action="store_true",
        help="Ask Claude for the plan and for missing paragraph text (requires --anthropic-api-key or ANTHROPIC_API_KEY)"
    )
    llm_group.add_argument(
        "--anthropic-api-key",
        default=os.environ.get("ANTHROPIC_API_KEY"),
        help="Anthropic API key (or set ANTHROPIC_API_KEY env var)"
    )
    llm_group.add_argument(
        "--llm-model",
        default="claude-sonnet-4-20250514",
        help="Claude model to use (default: claude-sonnet-4-20250514)"
    )
    llm_group.add_argument("--max-suggestions", type=int, default=5, help="Suggestions requested from the planner")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.plan and not args.use_llm:
        ap.error("either --plan or --use-llm is required")
    if args.use_llm and not args.anthropic_api_key:
        ap.error("--use-llm requires --anthropic-api-key or ANTHROPIC_API_KEY environment variable")

    config = load_engine_config(args.limits)

    planner = generator = None
    raw_plan = None
    if args.plan:
        raw_plan = Path(args.plan).read_text(encoding="utf-8")
    if args.use_llm:
        planner, generator = _build_llm(args)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    stem = Path(args.input_docx).stem
    bundle = Path(args.out) / f"{stem}_{ts}"
    bundle.mkdir(parents=True, exist_ok=True)
    original_copy = bundle / f"{stem}.original.docx"
    edited_path = bundle / f"{stem}.edited.docx"

    try:
        copy2(args.input_docx, original_copy)
        document = DocxDocument.load(str(original_copy))
        session = run_cycle(
            document,
            raw_plan,
            planner=None if raw_plan is not None else planner,
            generator=generator,
            config=config,
            dry_run=args.dry_run,
        )
    except (DocumentAccessError, PlanParseError, UnsafePlanError, OSError) as e:
        print(json.dumps({"status": "error", "error": type(e).__name__, "message": str(e)}, indent=2))
        return 1

    if not args.dry_run:
        document.save(str(edited_path))

    payload = build_payload(session, artifacts={
        "original_docx": str(original_copy),
        "edited_docx": None if args.dry_run else str(edited_path),
    })
    write_json(str(bundle / f"{stem}.changelog.json"), payload)
    write_txt(str(bundle / f"{stem}.changelog.txt"), payload)

    output = {
        "status": "ok",
        "bundle_dir": str(bundle),
        "dry_run": args.dry_run,
        "actions_kept": len(session.plan),
        "actions_dropped": len(session.plan.dropped),
        **payload["summary"],
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
