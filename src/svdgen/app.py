from __future__ import annotations

import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from svdgen.codegen.rust import EmitterOptions, RustGenerator
from svdgen.errors import SvdError
from svdgen.svd.cascade import cascade_device
from svdgen.svd.derive import resolve_device
from svdgen.svd.loader import load_svd, parse_svd
from svdgen.svd.model import Device
from svdgen.utils.logger import get_logger, setup_logging

log = get_logger(__name__)


def convert(device: Device, options: Optional[EmitterOptions] = None) -> str:
    """Resolve, cascade and emit a freshly loaded device."""
    resolve_device(device)
    cascade_device(device)
    return RustGenerator(options).generate_device(device)


def run_app(
    input_path: Optional[Path],
    output_path: Optional[Path],
    options: EmitterOptions,
    log_level: str = "INFO",
    quiet: bool = False,
) -> int:
    setup_logging(level=log_level, quiet=quiet)

    log.info("SVD: %s", input_path or "<stdin>")
    try:
        if input_path is not None:
            device = load_svd(input_path)
        else:
            device = parse_svd(getattr(sys.stdin, "buffer", sys.stdin).read())
        code = convert(device, options)
    except (ET.ParseError, SvdError, OSError) as e:
        log.debug("conversion failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if output_path is not None:
        try:
            output_path.write_text(code, encoding="utf-8")
        except OSError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(code)
        sys.stdout.flush()
    log.info("wrote %d bytes to %s", len(code), output_path or "<stdout>")
    return 0
