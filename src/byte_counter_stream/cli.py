"""
Command line byte counter.

Streams files (or stdin) through a push- or pull-mode byte counter and
prints the total.

Usage:
    byte-counter data.bin
    cat data.bin | byte-counter --mode pull
    byte-counter --passthrough big.log > copy.log
"""

import argparse
import asyncio
import logging
import sys
from typing import BinaryIO, Iterator, List, Optional

from .options import PushStreamOptions, PullStreamOptions
from .pull import PullByteCounter, ReadableStream, WritableStream
from .push import PushByteCounter, Writable, pipeline


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="byte-counter",
        description="Count the bytes flowing through a stream"
    )
    parser.add_argument(
        "files",
        nargs="*",
        default=["-"],
        help="Files to read ('-' for stdin, the default)"
    )
    parser.add_argument(
        "--mode",
        choices=["push", "pull"],
        default="push",
        help="Counter to use"
    )
    parser.add_argument(
        "--passthrough",
        action="store_true",
        help="Copy the data to stdout and print the count to stderr"
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=PushStreamOptions().chunk_size,
        help="Bytes read per chunk"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def read_chunks(paths: List[str], chunk_size: int) -> Iterator[bytes]:
    """Yield the contents of each path in order, chunk by chunk."""
    for path in paths:
        if path == "-":
            yield from _read_file(sys.stdin.buffer, chunk_size)
            continue
        with open(path, "rb") as handle:
            logger.debug(f"Reading {path}")
            yield from _read_file(handle, chunk_size)


def _read_file(handle: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        data = handle.read(chunk_size)
        if not data:
            break
        yield data


def count_push(chunks: Iterator[bytes], output: Optional[BinaryIO], options: PushStreamOptions) -> int:
    """Run chunks through a PushByteCounter and return the total."""
    counter = PushByteCounter(options)
    sink = Writable.from_file(output, options) if output is not None else Writable(options=options)
    pipeline(chunks, counter, sink, options=options)
    return counter.count


async def count_pull(chunks: Iterator[bytes], output: Optional[BinaryIO], options: PullStreamOptions) -> int:
    """Run chunks through a PullByteCounter and return the total."""
    counter = PullByteCounter(options)
    if output is not None:
        sink = WritableStream(write=output.write, close=output.flush)
    else:
        sink = WritableStream()
    await ReadableStream.from_iterable(chunks).pipe_through(counter).pipe_to(sink)
    return counter.count


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the byte-counter command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.chunk_size < 1:
        logger.error("--chunk-size must be at least 1")
        return 2

    output = sys.stdout.buffer if args.passthrough else None
    chunks = read_chunks(args.files, args.chunk_size)

    try:
        if args.mode == "push":
            total = count_push(chunks, output, PushStreamOptions(chunk_size=args.chunk_size))
        else:
            total = asyncio.run(count_pull(chunks, output, PullStreamOptions()))
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1

    report = sys.stderr if args.passthrough else sys.stdout
    print(total, file=report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
