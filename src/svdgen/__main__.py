from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from svdgen.app import run_app
from svdgen.codegen.rust import EmitterOptions


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="svdgen", description="Generate Rust register accessors from a CMSIS-SVD file")
    p.add_argument("input", nargs="?", type=Path, help="SVD file (default: stdin)")
    p.add_argument("-o", "--output", type=Path, help="Output .rs file (default: stdout)")

    # Code generation switches
    p.add_argument("--no-fields", action="store_true", help="Do not generate field wrapper types")
    p.add_argument("--no-group-fields", action="store_true", help="Do not merge NAME0..NAMEn fields into indexed accessors")
    p.add_argument("--no-bool-fields", action="store_true", help="Use the register integer type for 1-bit fields")
    p.add_argument("--no-group-peripherals", action="store_true", help="Emit every peripheral as its own module")
    p.add_argument("--no-doc", action="store_true", help="Omit #[doc] attributes")

    # Logging
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--quiet", action="store_true", help="Reduce console output")

    args = p.parse_args(argv)

    options = EmitterOptions(
        with_fields=not args.no_fields,
        group_fields=not args.no_group_fields,
        bool_fields=not args.no_bool_fields,
        group_peripherals=not args.no_group_peripherals,
        with_doc=not args.no_doc,
    )
    return run_app(
        input_path=args.input,
        output_path=args.output,
        options=options,
        log_level=args.log_level,
        quiet=args.quiet,
    )


if __name__ == "__main__":
    sys.exit(main())
