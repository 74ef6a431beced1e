"""
Main CLI entry point for kvtap.

This module provides the command-line interface that replays a stream of
decoded cache protocol events through the message printer.
"""

import base64
import json
import logging
from typing import Any, Dict, Iterable, Iterator, Optional, TextIO

import click

from .message_printer import MessagePrinter
from .models import (DEFAULT_ADDRESS_MAX_WIDTH, UNKNOWN, ConfigurationError,
                     DecodedEvent, Endpoint, FilterCriteria, PrinterOptions,
                     SessionSignal)

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@click.command()
@click.argument('events', type=click.File('r'), default='-')
@click.option('--host', help='Only show messages from or to this IP address')
@click.option('--port', type=click.IntRange(0, 65535), default=0,
              help='Only show messages from or to this port')
@click.option('--max-messages', '-n', type=click.IntRange(min=0), default=0,
              help='Stop after printing this many messages (0 = unbounded)')
@click.option('--after-match', '-A', 'after_match', type=click.IntRange(min=0), default=0,
              help='Also print this many messages after each match')
@click.option('--pattern', '-p', help='Only show messages whose key or value matches this regex')
@click.option('--ignore-case', '-i', is_flag=True, help='Match the pattern case-insensitively')
@click.option('--invert-match', '-I', is_flag=True, help='Show messages that do not match the pattern')
@click.option('--value-min-size', type=click.IntRange(min=0), default=0,
              help='Only show messages with at least this many value bytes')
@click.option('--value-max-size', type=click.IntRange(min=0), default=0,
              help='Only show messages with at most this many value bytes (0 = unbounded)')
@click.option('--raw', is_flag=True, help='Echo raw message bytes instead of formatted text')
@click.option('--quiet', '-q', is_flag=True, help='Count messages without printing them')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.option('--address-width', type=int, default=DEFAULT_ADDRESS_MAX_WIDTH,
              help='Display width available for a local socket path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(events, host, port, max_messages, after_match, pattern, ignore_case,
         invert_match, value_min_size, value_max_size, raw, quiet, no_color,
         address_width, verbose):
    """
    Inspect decoded cache protocol traffic.

    EVENTS is a file of decoded events, one JSON object per line
    (defaults to stdin).

    Examples:
        kvtap events.jsonl
        kvtap --port 11211 -p 'user:[0-9]+' -A 2 events.jsonl
        decoder | kvtap --raw -n 100
    """

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    options = PrinterOptions(
        max_messages=max_messages,
        num_after_match=after_match,
        disable_color=no_color,
        raw=raw,
        quiet=quiet,
        pattern=pattern,
        ignore_case=ignore_case,
        invert_match=invert_match,
        value_min_size=value_min_size,
        value_max_size=value_max_size,
        address_max_width=address_width,
    )

    try:
        criteria = FilterCriteria.from_options(host, port)
        printer = MessagePrinter(options, criteria)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    run_session(printer, read_events(events))

    if not raw:
        stats = printer.stats()
        click.echo(f"{stats['printed']} messages printed, {stats['skipped']} skipped", err=True)


def run_session(printer: MessagePrinter, events: Iterable[DecodedEvent]) -> int:
    """
    Feed events through the printer until the input ends or the session stops.

    Args:
        printer: Configured message printer
        events: Decoded events in capture order

    Returns:
        Number of messages printed
    """
    for event in events:
        if printer.print_message(event) is SessionSignal.STOP:
            logger.info("Stopping session")
            break
    return printer.printed_messages


def read_events(stream: TextIO) -> Iterator[DecodedEvent]:
    """
    Read decoded events from a JSON-lines stream.

    Lines that are not valid events are logged and skipped.
    """
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield parse_event(json.loads(line))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping line {line_number}: {e}")


def parse_event(record: Dict[str, Any]) -> DecodedEvent:
    """
    Convert one decoded event record into a DecodedEvent.

    Missing fields are treated as unknown or empty. Raw segments are
    base64 encoded.

    Raises:
        ValueError: If an endpoint or raw segment is malformed
        TypeError: If the record is not a JSON object, or the key or value
            is not a string
    """
    if not isinstance(record, dict):
        raise TypeError(f"expected a JSON object, got {type(record).__name__}")

    key = record.get('key') or ""
    if not isinstance(key, str):
        raise TypeError(f"key must be a string, got {type(key).__name__}")
    value = record.get('value')
    if value is not None and not isinstance(value, str):
        raise TypeError(f"value must be a string, got {type(value).__name__}")

    raw: Optional[list] = None
    if record.get('raw') is not None:
        raw = [base64.b64decode(segment, validate=True) for segment in record['raw']]

    return DecodedEvent(
        from_=Endpoint.parse(record.get('from')),
        to=Endpoint.parse(record.get('to')),
        protocol=record.get('protocol') or UNKNOWN,
        operation=record.get('op') or UNKNOWN,
        result=record.get('result') or UNKNOWN,
        key=key,
        value=value,
        raw=raw,
    )


if __name__ == "__main__":
    main()
