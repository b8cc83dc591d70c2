"""Main CLI entry point for the robust-ofx command-line tool.

Provides commands to parse OFX files into a tree, dump the token stream, and
summarize the financial records found in a statement.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from robust_ofx_parser import __version__
from robust_ofx_parser.api import load_financial_information, parse_file
from robust_ofx_parser.character import CharacterStreamProcessor
from robust_ofx_parser.shared.config import ConfigError, ParserConfig
from robust_ofx_parser.shared.logging import configure_logging, get_logger
from robust_ofx_parser.tokenization import tokenize

PRESETS = {
    "default": ParserConfig.default,
    "strict": ParserConfig.strict,
    "lenient": ParserConfig.lenient,
}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, parser_config: Optional[ParserConfig] = None):
        self.parser_config = parser_config or ParserConfig.default()
        self.output_format = self.parser_config.api.default_output_format
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a ``ParserConfig`` JSON file.

        Raises:
            ConfigError: If the file cannot be read or holds an invalid configuration
        """
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        return cls(ParserConfig.from_json(content))

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CLIConfig":
        """Build configuration from the config file and preset options."""
        if getattr(args, "config", None):
            config = cls.from_file(args.config)
        else:
            config = cls(PRESETS[getattr(args, "preset", "default")]())
        if getattr(args, "format", None):
            config.output_format = args.format
        config.verbose = args.verbose
        config.quiet = args.quiet
        return config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="robust-ofx",
        description="Robust OFX parser for SGML and XML financial statements"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse OFX files into element trees")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="OFX files to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text", "ofx"],
        help="Output format (default: from configuration, json)"
    )
    _add_common_options(parse_parser)

    # Tokens command
    tokens_parser = subparsers.add_parser("tokens", help="Print the token stream of an OFX file")
    tokens_parser.add_argument(
        "path",
        type=Path,
        help="OFX file to tokenize"
    )
    tokens_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )
    _add_common_options(tokens_parser)

    # Summary command
    summary_parser = subparsers.add_parser(
        "summary", help="Summarize accounts and transactions in OFX files"
    )
    summary_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="OFX files to summarize"
    )
    summary_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )
    _add_common_options(summary_parser)

    return parser


def _add_common_options(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    subparser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    subparser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="default",
        help="Parser configuration preset"
    )


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format parse results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if format_type == "ofx":
        return "\n\n".join(result["ofx"] for result in results if result.get("ofx"))

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Processed {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "OK" if result.get("success", False) else "FAILED"
        lines.append(f"[{status}] {result['file']}")
        lines.append(
            f"   Encoding: {result.get('encoding') or 'unknown'}, "
            f"Elements: {result.get('element_count', 0)}, "
            f"Time: {result.get('processing_time_ms', 0):.1f}ms"
        )

        diagnostics = result.get("diagnostics", [])
        errors = [d for d in diagnostics if d.get("severity") in ("ERROR", "CRITICAL")]
        for error in errors[:3]:
            lines.append(f"   Error: {error.get('message', '')}")
        if len(errors) > 3:
            lines.append(f"   ... and {len(errors) - 3} more errors")

        lines.append("")

    return "\n".join(lines)


def format_summaries(summaries: List[Dict[str, Any]], format_type: str) -> str:
    """Format financial summaries for output."""
    if format_type == "json":
        return json.dumps(summaries, indent=2)

    lines = []
    for entry in summaries:
        lines.append(entry["file"])
        summary = entry.get("summary")
        if summary is None:
            lines.append("   No financial information found")
            lines.append("")
            continue
        lines.append(f"   Institution: {summary['institution'] or 'unknown'}")
        lines.append(f"   Server date: {summary['server_date']}")
        for label, key in (("Bank", "bank_accounts"), ("Credit", "credit_accounts")):
            for account in summary[key]:
                lines.append(
                    f"   {label} {account['account']}: {account['balance']} "
                    f"{account['currency']} ({account['transactions']} transactions)"
                )
        lines.append(f"   Transactions: {summary['transactions']}")
        lines.append("")
    return "\n".join(lines)


def _write_output(output: str, destination: Optional[Path]) -> int:
    if destination is None:
        print(output)
        return 0
    try:
        destination.write_text(output, encoding="utf-8")
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1
    print(f"Results written to {destination}", file=sys.stderr)
    return 0


def cmd_parse(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle parse command."""
    parser_config = config.parser_config
    results = []
    for path in args.paths:
        result = parse_file(path, config=parser_config)
        entry = {
            "file": str(path),
            "success": result.success,
            "encoding": result.encoding,
            "element_count": result.element_count,
            "processing_time_ms": result.processing_time_ms,
        }
        entry.update(result.to_dict(include_headers=parser_config.api.include_headers))
        if config.output_format == "ofx" and result.root is not None:
            entry["ofx"] = result.root.to_ofx()
        results.append(entry)

    try:
        output = format_results(results, config.output_format)
    except RecursionError:
        print(
            f"Element tree is nested too deeply for {config.output_format} output; "
            "use --format ofx",
            file=sys.stderr,
        )
        return 1

    status = _write_output(output, args.output)
    if status:
        return status

    successful = sum(1 for r in results if r["success"])
    return 0 if results and successful == len(results) else 1


def cmd_tokens(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle tokens command."""
    try:
        raw_data = args.path.read_bytes()
    except OSError as e:
        print(f"Could not read {args.path}: {e}", file=sys.stderr)
        return 1

    try:
        char_result = CharacterStreamProcessor(config.parser_config.character).process(raw_data)
    except UnicodeDecodeError as e:
        print(f"Could not decode {args.path}: {e}", file=sys.stderr)
        return 1
    if not char_result.success:
        print(char_result.error, file=sys.stderr)
        return 1

    result = tokenize(char_result.text, max_tokens=config.parser_config.tokenizer.max_tokens)

    if config.output_format == "json":
        output = json.dumps(
            {
                "file": str(args.path),
                "encoding": char_result.encoding.encoding,
                "tokens": [
                    {"type": token.type.name, **vars(token)} for token in result.tokens
                ],
                "stop_position": result.stop_position,
                "stopped_early": result.stopped_early,
                "truncated": result.truncated,
            },
            indent=2,
        )
    else:
        lines = [f"{token.type.name:<10} {_token_value(token)!r}" for token in result.tokens]
        if result.stopped_early:
            lines.append(
                f"-- stopped at offset {result.stop_position} of {result.character_count}"
            )
        output = "\n".join(lines)

    return _write_output(output, args.output)


def _token_value(token: Any) -> str:
    values = list(vars(token).values())
    if len(values) == 2:
        return f"{values[0]}: {values[1]}"
    return values[0] if values else ""


def cmd_summary(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle summary command."""
    summaries = []
    for path in args.paths:
        information = load_financial_information(path, config=config.parser_config)
        summaries.append({
            "file": str(path),
            "summary": information.summary() if information is not None else None,
        })

    status = _write_output(format_summaries(summaries, config.output_format), args.output)
    if status:
        return status
    return 0 if all(entry["summary"] is not None for entry in summaries) else 1


COMMANDS = {
    "parse": cmd_parse,
    "tokens": cmd_tokens,
    "summary": cmd_summary,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = CLIConfig.from_args(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # Set up logging verbosity
    if config.verbose:
        configure_logging("DEBUG")
    elif config.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.parser_config.global_.logging_level)

    logger = get_logger(__name__, None, "cli")
    logger.debug("Running command", extra={"command": args.command})

    try:
        return COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
