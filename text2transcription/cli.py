"""Command-line interface for text2transcription.

WHY: Users need a simple way to transcribe English text from the
terminal or from scripts. The CLI wires together the full pipeline (user
preferences, lexicon loading, transcription, post-processing and the
pluggable formatters) behind a single command.

HOW: Uses argparse to accept the text (positional or --input-file), the
lexicon bundle, the preferred variety and the output formats. Progress
messages go to stderr; formatter output goes to stdout, or to files in
--output-dir when given.

RULES:
- Text comes from the positional argument or --input-file, never both
- --lexicon defaults to T2T_LEXICON_PATH; one of them is required
- --formats: comma-separated formatter keys (default: plain_text)
- --common-numerals switches every year-ambiguous numeral to the common reading
- Status and progress output goes to stderr (not stdout)
- Errors print one "Error: ..." line and exit with status 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import jsonschema

from text2transcription import config
from text2transcription.core.errors import LexiconFailure
from text2transcription.core.postprocess import ProgressEvent
from text2transcription.core.transcriber import Transcriber
from text2transcription.formatters import FORMATTERS
from text2transcription.formatters.base import FormatterOutput
from text2transcription.lexicon import load_lexicon

DEFAULT_FORMATS = "plain_text"
DEFAULT_STEM = "transcription"


def _status(msg: str) -> None:
    # stdout carries formatter output only
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _progress(event: ProgressEvent) -> None:
    _status("  [{:>3.0%}] {}".format(event.fraction, event.message))


def _parse_formats(value: str) -> List[str]:
    """Split and validate a comma-separated list of formatter keys."""
    keys = [key.strip() for key in value.split(",") if key.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            raise ValueError("Unknown format '{}'. Available formats: {}".format(key, available))
    if not keys:
        raise ValueError("No output format given")
    return keys


def _read_text(args: argparse.Namespace) -> str:
    if args.text is not None and args.input_file:
        raise ValueError("Give the text either as an argument or with --input-file, not both")
    if args.input_file:
        return Path(args.input_file).read_text(encoding="utf-8")
    if args.text is not None:
        return args.text
    raise ValueError("No input text. Pass it as an argument or use --input-file")


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Pick a file name in output_dir that does not exist yet.

    notes + -transcription.txt gives notes-transcription.txt, then
    notes-transcription-2.txt, notes-transcription-3.txt and so on.
    """
    path = output_dir / (stem + suffix)
    name, dot, ext = suffix.rpartition(".")
    if not dot:
        name, ext = suffix, ""
    counter = 1
    while path.exists():
        counter += 1
        path = output_dir / "{}{}-{}{}{}".format(stem, name, counter, dot, ext)
    return path


def _write_outputs(
    outputs: List[FormatterOutput],
    stem: str,
    output_dir: Optional[Path],
) -> None:
    for output in outputs:
        if output_dir is None:
            sys.stdout.write(output.content)
            continue
        path = _resolve_output_path(stem, output.suffix, output_dir)
        path.write_text(output.content, encoding="utf-8")
        _status("  Saved: {}".format(path.name))


def run(args: argparse.Namespace) -> None:
    """Execute the transcription pipeline for parsed arguments.

    Raises:
        LexiconFailure, ValueError, OSError, jsonschema.ValidationError:
            Reported by main() as a single error line.
    """
    format_keys = _parse_formats(args.formats)
    text = _read_text(args)

    lexicon_path = args.lexicon or config.LEXICON_PATH
    if not lexicon_path:
        raise ValueError("No lexicon configured. Use --lexicon or set T2T_LEXICON_PATH in .env")

    output_dir: Optional[Path] = None
    if args.output_dir:
        output_dir = Path(args.output_dir).resolve()
        if not output_dir.is_dir():
            raise ValueError("Output directory does not exist: {}".format(output_dir))
    stem = Path(args.input_file).stem if args.input_file else DEFAULT_STEM

    preferences = config.load_preferences(args.variety)
    _status("Loading lexicon {} ...".format(lexicon_path))
    lexicon = load_lexicon(lexicon_path, preferences)
    _status("  {} lemmas, preferred variety: {}".format(
        len(lexicon), preferences.preferred_variety.abbreviation,
    ))

    transcriber = Transcriber(lexicon, preferences, the_word_class=config.THE_WORD_CLASS)
    segments = transcriber.transcribe(
        text,
        on_progress=_progress if args.progress else None,
        common_numerals=args.common_numerals,
    )

    if args.common_numerals:
        switched = sum(
            1 for segment in segments
            if segment.numeral is not None and not segment.numeral.year_active
        )
        if switched:
            _status("  Switched {} numeral(s) to the common reading".format(switched))

    conflicts = sum(1 for segment in segments for item in segment.word_items() if item.conflict)
    if conflicts:
        _status("  {} item(s) need review (word class conflict)".format(conflicts))

    for key in format_keys:
        formatter = FORMATTERS[key]()
        _write_outputs(formatter.format(segments), stem, output_dir)


def build_parser() -> argparse.ArgumentParser:
    """Parser for the text2transcription command (separate so tests can inspect it)."""
    parser = argparse.ArgumentParser(
        prog="text2transcription",
        description="Transcribe English text into broad phonetic transcription "
                    "using a lexicon bundle.",
    )

    parser.add_argument(
        "text",
        nargs="?",
        default=None,
        help="The text to transcribe.",
    )

    parser.add_argument(
        "--input-file",
        default=None,
        help="Read the text from this UTF-8 file instead.",
    )

    parser.add_argument(
        "--lexicon",
        default=None,
        help="Path to a JSON lexicon bundle (default: T2T_LEXICON_PATH).",
    )

    parser.add_argument(
        "--variety",
        default=None,
        help="Preferred variety abbreviation, e.g. BrE or AmE "
             "(default: {}).".format(config.PREFERRED_VARIETY),
    )

    parser.add_argument(
        "--formats",
        default=DEFAULT_FORMATS,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: %(default)s.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Save outputs as files in this directory instead of printing them.",
    )

    parser.add_argument(
        "--common-numerals",
        action="store_true",
        help="Read numerals between 100 and 2000 as common numerals, not years.",
    )

    parser.add_argument(
        "--progress",
        action="store_true",
        help="Print per-segment progress to stderr.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the command; argv defaults to sys.argv[1:]."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=config.log_level(args.verbose),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args)
    except LexiconFailure as exc:
        _fail("Lexicon failure: {}".format(exc))
    except jsonschema.ValidationError as exc:
        _fail("Invalid lexicon bundle: {}".format(exc.message))
    except (ValueError, OSError) as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
