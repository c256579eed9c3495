"""Command line entry point: `boxarr [input] [-o output]`.

Reads a spec from a file or stdin and writes a PNG. Without `-o` the output
name is derived from the input file name (`specs/flow.box` becomes
`flow.png` in the working directory); with neither, PNG bytes go to stdout.

Exit codes:
    0 - Diagram written
    1 - Spec or layout error
    2 - Bad arguments or unreadable input
"""

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import List, Optional

import kiwisolver

from .errors import DiagramError
from .generator import DiagramGenerator
from .png_renderer import PillowGraphics

logger = logging.getLogger(__name__)


def png_file_name(source: str) -> str:
    """Output name for an input path: basename up to its first dot, plus .png."""
    stem = Path(source).name.split(".", 1)[0]
    if not stem:
        return "output.png"
    return f"{stem}.png"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boxarr",
        description="Generates a diagram based on input spec",
        epilog=(
            "Reads text input file or STDIN. "
            "Outputs PNG to file name derived from input or STDOUT."
        ),
    )
    parser.add_argument("input_file", nargs="?", help="Name of input file")
    parser.add_argument("-o", "--output", dest="output_file", help="Name of output file")
    parser.add_argument("--font", dest="font_path", help="TrueType font for labels")
    parser.add_argument("--scale", type=int, default=2, help="Pixels per diagram unit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.input_file:
            spec_text = Path(args.input_file).read_text(encoding="utf-8")
        else:
            spec_text = sys.stdin.read()
    except OSError as err:
        print(f"boxarr: cannot read input: {err}", file=sys.stderr)
        return 2

    generator = DiagramGenerator(PillowGraphics(font_path=args.font_path, scale=args.scale))
    try:
        image = generator.render(spec_text)
    except DiagramError as err:
        print(f"boxarr: {err}", file=sys.stderr)
        return 1
    except (kiwisolver.UnsatisfiableConstraint, kiwisolver.DuplicateConstraint) as err:
        print(f"boxarr: layout cannot be solved: {type(err).__name__}", file=sys.stderr)
        return 1

    if args.output_file:
        output = args.output_file
    elif args.input_file:
        output = png_file_name(args.input_file)
    else:
        buffer = io.BytesIO()
        image.save(buffer, "PNG")
        sys.stdout.buffer.write(buffer.getvalue())
        sys.stdout.buffer.flush()
        return 0

    image.save(output, "PNG")
    logger.debug("Wrote %s", output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
