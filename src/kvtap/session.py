"""
Session bookkeeping for a capture session.

Counts printed messages, tracks the "show N more after a match" window and
tells the caller when the message bound has been reached.
"""

import logging

from .models import ConfigurationError, SessionSignal

logger = logging.getLogger(__name__)


class SessionState:
    """
    Mutable counters of one capture session.

    Only on_message_printed() and start_after_match() change the state; the
    caller acts on the returned SessionSignal.
    """

    def __init__(self, max_messages: int = 0, num_after_match: int = 0):
        """
        Initialize the session counters.

        Args:
            max_messages: Stop after this many printed messages, 0 for unbounded
            num_after_match: Messages to keep printing after a match, 0 to disable

        Raises:
            ConfigurationError: If either count is negative
        """
        if max_messages < 0:
            raise ConfigurationError(f"max_messages must be >= 0, got {max_messages}")
        if num_after_match < 0:
            raise ConfigurationError(f"num_after_match must be >= 0, got {num_after_match}")
        self.max_messages = max_messages
        self.num_after_match = num_after_match
        self.printed_messages = 0
        self.after_match_remaining = 0

    @property
    def in_after_match_window(self) -> bool:
        return self.after_match_remaining > 0

    @property
    def limit_reached(self) -> bool:
        return self.max_messages > 0 and self.printed_messages >= self.max_messages

    def start_after_match(self) -> None:
        """Re-arm the after-match window when a message matched the search."""
        self.after_match_remaining = self.num_after_match

    def on_message_printed(self) -> SessionSignal:
        """
        Account for one emitted message.

        The message bound and the after-match window are both evaluated on
        every call. STOP wins over WINDOW_CLOSED when both happen at once.

        Returns:
            STOP once the message bound is reached, WINDOW_CLOSED when this
            message used up the after-match window, CONTINUE otherwise
        """
        self.printed_messages += 1

        signal = SessionSignal.CONTINUE
        if self.after_match_remaining > 0:
            self.after_match_remaining -= 1
            if self.after_match_remaining == 0:
                signal = SessionSignal.WINDOW_CLOSED

        if self.limit_reached:
            logger.info(f"Message limit reached ({self.printed_messages}/{self.max_messages})")
            signal = SessionSignal.STOP

        return signal

    def __repr__(self) -> str:
        return (f"SessionState(printed={self.printed_messages}, "
                f"max={self.max_messages}, "
                f"after_match={self.after_match_remaining}/{self.num_after_match})")
