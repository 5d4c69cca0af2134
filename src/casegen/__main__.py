"""Command line entry point.

Usage:
    python -m casegen generate --prompt "..." --schema-file schema.json
    python -m casegen classify --prompt-file prompt.txt --schema-file schema.json
    python -m casegen config --json
    python -m casegen config --profiles
    python -m casegen config --env
"""

import argparse
from collections.abc import Sequence
import json
import logging
from pathlib import Path
import sys
from typing import Any

from casegen.config import (
    ConfigFileError,
    check_environment,
    get_effective_profile,
    list_available_profiles,
    resolve_config,
)
from casegen.core.types import GenerationRequest
from casegen.exceptions import CasegenError
from casegen.generator import create_generator
from casegen.pipeline.classifier import classify, explain

# ruff: noqa: T201


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="casegen", description="Generate structured finance case data."
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_request_args(p: argparse.ArgumentParser) -> None:
        source = p.add_mutually_exclusive_group(required=True)
        source.add_argument("--prompt", help="Prompt text")
        source.add_argument("--prompt-file", type=Path, help="File holding the prompt")
        p.add_argument(
            "--schema-file", type=Path, required=True, help="JSON file holding the schema"
        )

    gen = sub.add_parser(
        "generate", parents=[common], help="Generate a structured value"
    )
    add_request_args(gen)
    gen.add_argument("--profile", help="scenario, full-model or template")
    gen.add_argument("--correlation-id", help="Identifier carried in the logs")
    gen.add_argument(
        "--mock", action="store_true", help="Answer with the mock responder"
    )

    cls = sub.add_parser(
        "classify", parents=[common], help="Show the profile a request would use"
    )
    add_request_args(cls)

    cfg = sub.add_parser(
        "config", parents=[common], help="Show the effective configuration"
    )
    cfg.add_argument("--json", action="store_true", help="Output as JSON")
    cfg.add_argument("--profile", help="Configuration profile to resolve")
    view = cfg.add_mutually_exclusive_group()
    view.add_argument(
        "--profiles", action="store_true", help="List profiles defined in config files"
    )
    view.add_argument(
        "--env", action="store_true", help="Show casegen environment variables"
    )
    return parser


def _read_request_parts(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    prompt = args.prompt
    if prompt is None:
        prompt = args.prompt_file.read_text(encoding="utf-8")
    schema = json.loads(args.schema_file.read_text(encoding="utf-8"))
    return prompt, schema


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _cmd_generate(args: argparse.Namespace) -> int:
    prompt, schema = _read_request_parts(args)
    request_kwargs: dict[str, Any] = {"task_profile": args.profile}
    if args.correlation_id:
        request_kwargs["correlation_id"] = args.correlation_id
    request = GenerationRequest(prompt, schema, **request_kwargs)

    overrides = {"debug_mock": True} if args.mock else {}
    generator = create_generator(**overrides)
    result = generator.generate_sync(request)
    print(json.dumps(result.value, indent=2))
    return 0


def _cmd_classify(args: argparse.Namespace) -> int:
    prompt, schema = _read_request_parts(args)
    profile = classify(prompt, schema)
    logging.getLogger(__name__).info("Matched rule %s", explain(prompt, schema))
    print(profile.value)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    if args.profiles:
        report: dict[str, Any] = {
            "active": args.profile or get_effective_profile(),
            **list_available_profiles(),
        }
    elif args.env:
        report = dict(check_environment())
    else:
        resolved = resolve_config(profile=args.profile)
        if not args.json:
            print(f"profile: {args.profile or get_effective_profile() or '(none)'}")
            print(resolved.audit())
            return 0
        report = resolved.audit_dict()

    if args.json:
        print(json.dumps(report, indent=2, default=str))
    else:
        for key, value in report.items():
            print(f"{key}: {value}")
    return 0


_COMMANDS = {
    "generate": _cmd_generate,
    "classify": _cmd_classify,
    "config": _cmd_config,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return _COMMANDS[args.command](args)
    except (CasegenError, ConfigFileError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"error: could not read input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
