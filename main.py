"""
Command line adapter.

    aztec-encode   Base64 payload on stdin  -> Base64 PNG on stdout
    aztec-decode   Base64 PNG on stdin      -> Base64 payload on stdout

Exit status is 0 on success and 1 on any failure, which is reported on stderr.
"""

import argparse
import base64
import binascii
import io
import logging
import sys

from PIL import Image, UnidentifiedImageError

from config import AztecConfig
from decoder import decode_symbol
from encoder import encode_symbol
from errors import AztecError

logger = logging.getLogger("aztec")

COMMANDS = ("aztec-encode", "aztec-decode")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="aztec-adapter",
        description="Encode a payload as an Aztec code PNG or decode one, "
                    "with Base64 framing on stdin and stdout.",
    )
    parser.add_argument("command", type=str.lower, choices=COMMANDS)
    parser.add_argument("--width", type=int, default=500,
                        help="minimum rendered width, also the decode normalisation width")
    parser.add_argument("--height", type=int, default=500,
                        help="minimum rendered height, also the decode normalisation height")
    parser.add_argument("--charset", default="ISO-8859-1",
                        help="single-byte charset of the payload (default: %(default)s)")
    parser.add_argument("--ecc-percent", type=int, default=33,
                        help="minimum share of error correction in percent of the data bits")
    parser.add_argument("--layers", type=int, default=0,
                        help="force the layer count, negative for a compact symbol")
    parser.add_argument("--no-normalize", action="store_true",
                        help="do not upscale small images before decoding")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser


def encode_command(text: str, config: AztecConfig) -> str:
    payload = base64.b64decode(text, validate=True)
    logger.debug("Encoding %d payload bytes", len(payload))
    matrix = encode_symbol(payload, config)
    logger.debug("Symbol has %d x %d modules", matrix.size, matrix.size)
    image = matrix.to_image(config.min_width, config.min_height)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def decode_command(text: str, config: AztecConfig) -> str:
    data = base64.b64decode(text, validate=True)
    image = Image.open(io.BytesIO(data))
    image.load()
    logger.debug("Decoding %s image of %d x %d pixels", image.format, image.width, image.height)
    payload = decode_symbol(image, config)
    logger.debug("Decoded %d payload bytes", len(payload))
    return base64.b64encode(payload).decode("ascii")


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
    )
    try:
        config = AztecConfig(
            charset=args.charset,
            min_ecc_percent=args.ecc_percent,
            layers=args.layers,
            min_width=args.width,
            min_height=args.height,
            normalize=not args.no_normalize,
        )
        text = "".join(sys.stdin.read().split())
        if args.command == "aztec-encode":
            output = encode_command(text, config)
        else:
            output = decode_command(text, config)
    except AztecError as exc:
        logger.error("Error: %s: %s", exc.kind.value, exc)
        return 1
    except (ValueError, binascii.Error, UnidentifiedImageError, OSError) as exc:
        logger.error("Error: %s", exc)
        return 1
    sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
