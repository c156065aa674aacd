"""
Command-line entry point.

    codeclip [directory] [output_file] [extensions] [config_file] [options]

Architecture:
    CLI Args -> FileConfig -> ScanConfig -> Scan -> Format -> Output
    --monitor / --cpymon -> MonitorLoop
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from codeclip import get_version
from codeclip.clipboard import ClipboardBridge, SystemClipboard
from codeclip.config import (
    DEFAULT_CONFIG_PATH,
    ConfigBuilder,
    FileConfig,
    OutputMode,
    ScanConfig,
    load_config,
    resolve_project_types,
    write_config,
)
from codeclip.detection import ProjectDetector
from codeclip.errors import ClipboardError, CodeclipError
from codeclip.formatters import build_cpymon_payload, build_payload, calculate_stats
from codeclip.monitor import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS, MonitorLoop, MonitorOptions
from codeclip.scanner import ScanResult, scan_project

logger = logging.getLogger(__name__)

AI_FORMATS = ["standard", "markdown", "xml", "json"]
OPTIMIZE_TARGETS = ["generic", "claude", "gpt", "gemini"]


# =============================================================================
# OUTPUT WRITER
# =============================================================================

class OutputWriter:
    """Handles output to various destinations."""

    @staticmethod
    def write(
        content: str,
        summary: str,
        config: ScanConfig,
        clipboard: ClipboardBridge,
    ) -> bool:
        """Write content to configured destination."""
        if config.output_mode == OutputMode.FILE:
            return OutputWriter._write_file(content, summary, config.output_file, config.encoding)
        elif config.output_mode == OutputMode.STDOUT:
            return OutputWriter._write_stdout(content)
        else:
            return OutputWriter._write_clipboard(content, summary, clipboard)

    @staticmethod
    def _write_file(content: str, summary: str, path: Optional[Path], encoding: str) -> bool:
        if not path:
            return False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding=encoding)
            print(summary, file=sys.stderr)
            print(f"✅ Written to {path}", file=sys.stderr)
            return True
        except (OSError, LookupError) as e:
            print(f"❌ Error writing file: {e}", file=sys.stderr)
            return False

    @staticmethod
    def _write_stdout(content: str) -> bool:
        try:
            print(content)
            return True
        except OSError as e:
            print(f"❌ Error writing to stdout: {e}", file=sys.stderr)
            return False

    @staticmethod
    def _write_clipboard(content: str, summary: str, clipboard: ClipboardBridge) -> bool:
        try:
            print(summary, file=sys.stderr)
            clipboard.set_text(content)
            print(f"✅ {len(content):,} chars copied to clipboard", file=sys.stderr)
            return True
        except ClipboardError as e:
            print(f"❌ Clipboard error: {e}", file=sys.stderr)
            return False


def format_summary(result: ScanResult) -> str:
    stats = calculate_stats(result.files)
    types = ", ".join(result.config.project_types) or "none detected"
    return (
        f"📋 Project type(s): {types}\n"
        f"📊 {stats.total_files} files, {stats.total_lines:,} lines, "
        f"~{stats.estimated_tokens:,} tokens ({result.duration:.2f}s)"
    )


# =============================================================================
# ARGUMENT PARSER
# =============================================================================

def interval_ms(value: str) -> int:
    try:
        ms = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid interval: {value!r}")
    if ms < MIN_INTERVAL_MS:
        raise argparse.ArgumentTypeError(f"interval must be at least {MIN_INTERVAL_MS}ms")
    return ms


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive number")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="codeclip",
        description="Concatenate a project's source files for LLM assistants "
                    "and apply pasted edits from the clipboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  codeclip                         # Scan current dir, copy to clipboard
  codeclip ./src out.txt           # Write to file
  codeclip . "" .py,.pyi           # Only Python files
  codeclip --ai-format markdown --include-stats
  codeclip --cpymon                # Copy with reply instructions, then monitor
  codeclip --monitor               # Apply edits copied from the assistant
  codeclip --detect                # Show detected project types
        """,
    )

    # Positional
    parser.add_argument("directory", nargs="?", default=".", help="Project directory (default: current)")
    parser.add_argument("output_file", nargs="?", default=None, help="Write output to this file")
    parser.add_argument("extensions", nargs="?", default=None, help="Comma-separated extensions to include, e.g. .py,.js")
    parser.add_argument("config_file", nargs="?", default=DEFAULT_CONFIG_PATH, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")

    # Output options
    out = parser.add_argument_group("Output Options")
    out.add_argument("--stdout", action="store_true", help="Print to stdout instead of the clipboard")
    out.add_argument("--ai-format", choices=AI_FORMATS, default="standard", help="Output format (default: standard)")
    out.add_argument("--optimize-for", choices=OPTIMIZE_TARGETS, default="generic", help="Target assistant named in the header")
    out.add_argument("--include-stats", action="store_true", help="Add codebase statistics")
    out.add_argument("--include-prompts", action="store_true", help="Add suggested analysis questions")
    out.add_argument("--include-instructions", action="store_true", help="Add analysis instructions")
    out.add_argument("--include-line-numbers", action="store_true", help="Number lines in markdown output")
    out.add_argument("--max-tokens", type=positive_int, metavar="N", help="Warn when the output exceeds N tokens")

    # Tree display
    tree = parser.add_argument_group("Directory Tree")
    tree.add_argument("-AIF", "--include-ignored", action="store_true", help="Show ignored entries in the tree")
    tree.add_argument("-AIFI", "--mark-ignored", action="store_true", help="Show and mark ignored entries in the tree")
    tree.add_argument("-no-style", "--no-style", action="store_true", help="Plain tree without icons")

    # Configuration
    cfg = parser.add_argument_group("Configuration")
    cfg.add_argument("--no-auto-detect", action="store_true", help="Use project_type from the config file")
    cfg.add_argument("-cc", "--create-config", action="store_true", help="Write a config file for this project")
    cfg.add_argument("--add-file", action="append", metavar="NAME", help="Add a file name to the ignore list")
    cfg.add_argument("--add-folder", action="append", metavar="NAME", help="Add a folder name to the ignore list")
    cfg.add_argument("--add-ext", action="append", metavar="EXT", help="Add an extension to the ignore list")

    # Clipboard monitor
    mon = parser.add_argument_group("Clipboard Monitor")
    mon.add_argument("--monitor", action="store_true", help="Watch the clipboard and apply pasted edits")
    mon.add_argument("--cpymon", action="store_true", help="Copy the project with reply instructions, then monitor")
    mon.add_argument(
        "--monitor-interval",
        type=interval_ms,
        default=DEFAULT_INTERVAL_MS,
        metavar="MS",
        help=f"Clipboard polling interval (default: {DEFAULT_INTERVAL_MS}, min: {MIN_INTERVAL_MS})",
    )

    # Meta
    meta = parser.add_argument_group("Information")
    meta.add_argument("--detect", action="store_true", help="Print project type candidates and exit")
    meta.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    meta.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")

    return parser


def setup_logging(args: argparse.Namespace) -> None:
    monitoring = args.monitor or args.cpymon
    if args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO if monitoring else logging.WARNING

    if monitoring:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(message)s",
            datefmt="%H:%M:%S",
            stream=sys.stderr,
        )
    else:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


# =============================================================================
# COMMANDS
# =============================================================================

def run_detect(root: Path, detector: ProjectDetector) -> int:
    candidates = detector.score(root)
    if not candidates:
        print("🔍 No specific project type detected")
        return 0
    print(f"📋 Project type candidates for {root}:")
    for candidate in candidates:
        print(
            f"   {candidate.name}: confidence {candidate.confidence:.2f} "
            f"(score {candidate.raw_score}, priority {candidate.priority}, "
            f"matches {candidate.matches})"
        )
    return 0


def run_config_update(args: argparse.Namespace, config_path: Path) -> int:
    file_config = load_config(config_path)
    added = 0
    for attr, values in (
        ("ignore_files", args.add_file),
        ("ignore_folders", args.add_folder),
        ("ignore_extensions", args.add_ext),
    ):
        for value in values or []:
            if file_config.add_unique(attr, value.strip()):
                print(f"➕ Added {value.strip()} to {attr.replace('_', ' ')}", file=sys.stderr)
                added += 1
            else:
                print(f"⚠️ {value.strip()} is already in {attr.replace('_', ' ')}", file=sys.stderr)

    if added:
        write_config(file_config, config_path)
        print(f"✅ Updated {config_path}", file=sys.stderr)
    return 0


def run_create_config(args: argparse.Namespace, config_path: Path, detector: ProjectDetector) -> int:
    if config_path.exists():
        print(f"⚠️ {config_path} already exists, not overwriting", file=sys.stderr)
        return 1

    root = Path(args.directory).resolve()
    file_config = FileConfig()
    types = resolve_project_types(root, file_config, not args.no_auto_detect, detector)
    if types:
        file_config.project_type = types[0]
    write_config(file_config, config_path)
    print(f"✅ Created {config_path}", file=sys.stderr)
    return 0


def run_monitor(args: argparse.Namespace, encoding: str, clipboard: ClipboardBridge) -> int:
    options = MonitorOptions(
        project_dir=Path(args.directory),
        interval_ms=args.monitor_interval,
        verbose=args.verbose,
        encoding=encoding,
    )
    print("📋 Copy an edit from your assistant to apply it. Press Ctrl+C to stop.", file=sys.stderr)
    MonitorLoop(options, clipboard).run()
    return 0


def run_scan(
    args: argparse.Namespace,
    file_config: FileConfig,
    clipboard: ClipboardBridge,
    detector: ProjectDetector,
) -> int:
    config = ConfigBuilder.from_args(args, file_config, detector)
    result = scan_project(config)
    if not result.files:
        print("⚠️ No files matched the filters", file=sys.stderr)

    if args.cpymon:
        content = build_cpymon_payload(result)
        config = _clipboard_only(config)
    else:
        content = build_payload(result)

    success = OutputWriter.write(content, format_summary(result), config, clipboard)
    if not success:
        return 1
    if args.cpymon:
        return run_monitor(args, config.encoding, clipboard)
    return 0


def _clipboard_only(config: ScanConfig) -> ScanConfig:
    if config.output_mode == OutputMode.CLIPBOARD:
        return config
    logger.warning("--cpymon always copies to the clipboard; ignoring other output options")
    return replace(config, output_mode=OutputMode.CLIPBOARD, output_file=None)


# =============================================================================
# MAIN
# =============================================================================

def main(
    argv: Optional[List[str]] = None,
    clipboard: Optional[ClipboardBridge] = None,
) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args)

    clipboard = clipboard or SystemClipboard()
    detector = ProjectDetector()
    root = Path(args.directory)
    config_path = Path(args.config_file)

    if not root.is_dir():
        print(f"❌ Directory not found: {root}", file=sys.stderr)
        return 1

    try:
        if args.detect:
            return run_detect(root.resolve(), detector)
        if args.create_config:
            return run_create_config(args, config_path, detector)
        if args.add_file or args.add_folder or args.add_ext:
            return run_config_update(args, config_path)

        file_config = load_config(config_path)
        if args.monitor:
            return run_monitor(args, file_config.output_encoding, clipboard)
        return run_scan(args, file_config, clipboard, detector)

    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        return 130
    except CodeclipError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Critical error")
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
