"""
Exceptions raised by the bracket core.

Every error is recoverable: the operation that raised it has not touched
the tournament.
"""


class BracketError(Exception):
    """Base exception for all bracket errors."""
    code = 'bracket_error'


class EmptyPairingError(BracketError):
    """Raised when a first-round pairing has no participant on either side."""
    code = 'empty_pairing'

    def __init__(self, slot_index: int):
        self.slot_index = slot_index
        super().__init__(f"First-round match {slot_index} has no participants")


class AlreadyDecidedError(BracketError):
    """Raised when selecting a winner for a match that is already completed."""
    code = 'already_decided'

    def __init__(self, round_index: int, slot_index: int):
        self.round_index = round_index
        self.slot_index = slot_index
        super().__init__(f"Match {slot_index} of round {round_index + 1} is already decided")


class EmptySlotError(BracketError):
    """Raised when the chosen side of a match has no participant."""
    code = 'empty_slot'

    def __init__(self, round_index: int, slot_index: int, side: str):
        self.round_index = round_index
        self.slot_index = slot_index
        self.side = side
        super().__init__(f"No participant in {side} of match {slot_index}, round {round_index + 1}")


class AlreadyCompleteError(BracketError):
    """Raised when simulating a tournament that already has a champion."""
    code = 'already_complete'

    def __init__(self):
        super().__init__("Tournament is already complete. Reset or clear it first.")


class InvalidParticipantCountError(BracketError):
    """Raised when the participant count is not supported."""
    code = 'invalid_participant_count'

    def __init__(self, count, reason: str = None):
        self.count = count
        msg = f"Invalid participant count: {count}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MatchNotFoundError(BracketError):
    """Raised when no match exists at the given round/slot address."""
    code = 'match_not_found'

    def __init__(self, round_index, slot_index):
        self.round_index = round_index
        self.slot_index = slot_index
        super().__init__(f"No match at round index {round_index}, slot {slot_index}")


class MatchNotReadyError(BracketError):
    """Raised when a match still waits on a pending match of the previous round."""
    code = 'match_not_ready'

    def __init__(self, round_index: int, slot_index: int):
        self.round_index = round_index
        self.slot_index = slot_index
        super().__init__(
            f"Match {slot_index} of round {round_index + 1} is waiting on the previous round"
        )


class InvalidNameError(BracketError):
    """Raised when a participant name is blank."""
    code = 'invalid_name'

    def __init__(self):
        super().__init__("Participant name cannot be empty")
