"""
Message printer: decides which decoded messages to show and shows them.

The printer ties together the endpoint filter, the formatters, the pattern
matcher and the session counters. It owns its options and session state;
events and raw buffers are only borrowed for the duration of a call.
"""

import logging
import sys
from typing import BinaryIO, Callable, Dict, Optional, Sequence, Union

from rich.console import Console
from rich.text import Text

from .endpoint_filter import matches
from .formatter import backslashify, describe_connection, describe_header
from .models import (STYLES, Buffer, DecodedEvent, Endpoint, FilterCriteria,
                     PrinterOptions, SessionSignal)
from .pattern_matcher import compile_pattern, find_all
from .session import SessionState

logger = logging.getLogger(__name__)

ValueFormatter = Callable[[Union[str, bytes]], str]
StopCallback = Callable[["MessagePrinter"], None]


def default_value_formatter(value: Union[str, bytes]) -> str:
    """Render a value payload; bytes are escaped, text is kept as is."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return backslashify(bytes(value))
    return str(value)


class MessagePrinter:
    """
    Filters, formats and prints decoded protocol messages.

    Every printing method returns the SessionSignal of the session counter
    so the caller can stop the capture when the message bound is reached.
    """

    def __init__(
        self,
        options: Optional[PrinterOptions] = None,
        criteria: Optional[FilterCriteria] = None,
        stop_callback: Optional[StopCallback] = None,
        console: Optional[Console] = None,
        raw_out: Optional[BinaryIO] = None,
        value_formatter: Optional[ValueFormatter] = None
    ):
        """
        Initialize the MessagePrinter.

        Args:
            options: Display and session settings
            criteria: Endpoint filter, None to show every endpoint pair
            stop_callback: Called with this printer whenever the message bound
                is reached, in addition to the STOP signal being returned
            console: Text output sink, a colored stdout console by default
            raw_out: Binary output sink for raw mode, stdout by default
            value_formatter: Renders value payloads in the formatted path

        Raises:
            ConfigurationError: If the options or the search pattern are invalid
        """
        self.options = options or PrinterOptions()
        self.options.validate()
        self.criteria = criteria or FilterCriteria()
        self.session = SessionState(self.options.max_messages, self.options.num_after_match)
        self.stop_callback = stop_callback
        self.value_formatter = value_formatter or default_value_formatter

        self._pattern = None
        if self.options.pattern:
            self._pattern = compile_pattern(self.options.pattern, self.options.ignore_case)

        if console is None:
            console = Console(no_color=self.options.disable_color, highlight=False, soft_wrap=True)
        elif self.options.disable_color:
            console.no_color = True
        self.console = console
        self._raw_out = raw_out
        self._skipped_messages = 0

    @property
    def printed_messages(self) -> int:
        return self.session.printed_messages

    @property
    def raw_out(self) -> BinaryIO:
        return self._raw_out if self._raw_out is not None else sys.stdout.buffer

    def match_address(self, from_: Endpoint, to: Endpoint) -> bool:
        """Check the endpoint pair against the configured filter criteria."""
        return matches(from_, to, self.criteria)

    def should_print(self, event: DecodedEvent) -> bool:
        """
        Decide whether a decoded message is to be shown.

        A message must pass the endpoint filter and the value size bounds.
        With a search pattern configured it must also match (or not match,
        when inverted), unless it falls inside the after-match window of an
        earlier match.
        """
        return self._select(event) is not None

    def format_message(self, event: DecodedEvent) -> Text:
        """
        Compose the display text of a message.

        The text holds the connection line, the header line and the indented
        value, each only when non-empty. Pattern matches are highlighted.
        """
        text = Text()
        lines = [
            (describe_connection(event.from_, event.to, event.protocol,
                                 self.options.address_max_width), STYLES["connection"]),
            (describe_header(event.operation, event.result, event.key), STYLES["header"]),
            (self._format_value(event), STYLES["value"]),
        ]
        for line, style in lines:
            if not line:
                continue
            if text.plain:
                text.append("\n")
            text.append(line, style=style)

        if self._pattern is not None and not self.options.invert_match:
            for span in find_all(text.plain, self._pattern):
                if span.length:
                    text.stylize(STYLES["match"], span.offset, span.end)
        return text

    def print_message(self, event: DecodedEvent) -> SessionSignal:
        """
        Filter a decoded message and print it, formatted or raw.

        A message that matched the search pattern opens a window of
        num_after_match further messages that are shown regardless.

        Returns:
            The session signal after counting the message, CONTINUE if the
            message was filtered out
        """
        matched = self._select(event)
        if matched is None:
            self._skipped_messages += 1
            return SessionSignal.CONTINUE

        if self.options.raw:
            signal = self.print_raw(event.raw)
        else:
            if not self.options.quiet:
                text = self.format_message(event)
                if not text.plain:
                    self._skipped_messages += 1
                    return SessionSignal.CONTINUE
                self.console.print(text)
            signal = self._count_stats()

        if matched:
            self.session.start_after_match()
        return signal

    def print_raw(self, buffers: Optional[Sequence[Optional[Buffer]]]) -> SessionSignal:
        """
        Write the exact wire bytes of a message, bypassing all formatting.

        The segments are written in order as one write and flushed right
        away. No filtering happens here.

        Args:
            buffers: Raw segments of one message, None when there is no data

        Returns:
            The session signal after counting the message, CONTINUE without
            counting when there was no data
        """
        if not buffers or buffers[0] is None:
            return SessionSignal.CONTINUE

        raw_message = b"".join(buffers)
        self.raw_out.write(raw_message)
        self.raw_out.flush()
        return self._count_stats()

    def stats(self) -> Dict[str, int]:
        """Get the printed and skipped message counts."""
        return {
            "printed": self.session.printed_messages,
            "skipped": self._skipped_messages,
        }

    def _count_stats(self) -> SessionSignal:
        signal = self.session.on_message_printed()
        if signal is SessionSignal.STOP and self.stop_callback is not None:
            self.stop_callback(self)
        return signal

    def _select(self, event: DecodedEvent) -> Optional[bool]:
        # None when rejected, otherwise whether the search pattern matched
        if not self.match_address(event.from_, event.to):
            logger.debug(f"Skipping {event.from_} -> {event.to}: endpoint filter")
            return None

        size = event.value_size
        if self.options.value_min_size and size < self.options.value_min_size:
            logger.debug(f"Skipping message with {size} byte value: below minimum")
            return None
        if self.options.value_max_size and size > self.options.value_max_size:
            logger.debug(f"Skipping message with {size} byte value: above maximum")
            return None

        if self._pattern is None:
            return False
        if self._match_pattern(event) != self.options.invert_match:
            return True
        if self.session.in_after_match_window:
            return False
        return None

    def _format_value(self, event: DecodedEvent) -> str:
        if event.value is None or len(event.value) == 0:
            return ""
        rendered = self.value_formatter(event.value)
        return "\n".join(f"  {line}" for line in rendered.splitlines())

    def _match_pattern(self, event: DecodedEvent) -> bool:
        searchable = [backslashify(event.key) if event.key else ""]
        if event.value is not None:
            searchable.append(self.value_formatter(event.value))
        return self._pattern.search("\n".join(searchable)) is not None
