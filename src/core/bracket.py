"""
Single elimination bracket state and progression.

BracketManager owns one tournament and is the only place it is mutated.
Every successful command notifies subscribers with a fresh snapshot.
"""
import logging
import math
import random
from typing import Callable, Dict, List, Optional

from .elimination import (
    BRACKET_FORMATS,
    STANDARD,
    SUPPORTED_PARTICIPANT_COUNTS,
    build_rounds,
    calculate_bracket_size,
    create_participants,
    get_round_name,
    seed_participants,
)
from .errors import (
    AlreadyCompleteError,
    AlreadyDecidedError,
    EmptySlotError,
    InvalidNameError,
    InvalidParticipantCountError,
    MatchNotFoundError,
    MatchNotReadyError,
)
from .models import COMPLETED, PENDING, SIDES, Match, Participant, Tournament

logger = logging.getLogger(__name__)

DEFAULT_TOURNAMENT_NAME = 'Championship Bracket'
DEFAULT_MAX_PARTICIPANTS = 64


def calculate_bracket_stats(rounds: List[List[Match]]) -> Dict[str, int]:
    """
    Count total, completed and remaining matches.

    completion_rate is a whole percentage rounded half up, 0 for an empty
    bracket.
    """
    total = 0
    completed = 0
    for round_matches in rounds:
        for match in round_matches:
            total += 1
            if match.is_completed:
                completed += 1

    completion_rate = math.floor(completed / total * 100 + 0.5) if total else 0
    return {
        'total': total,
        'completed': completed,
        'remaining': total - completed,
        'completion_rate': completion_rate,
    }


def validate_participant_count(count, strict: bool = False,
                               max_participants: int = DEFAULT_MAX_PARTICIPANTS) -> int:
    """Return count as an int, or raise InvalidParticipantCountError."""
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidParticipantCountError(count, "must be an integer")
    if count < 2:
        raise InvalidParticipantCountError(count, "a bracket needs at least 2 participants")
    if count > max_participants:
        raise InvalidParticipantCountError(count, f"maximum is {max_participants}")
    if strict and count not in SUPPORTED_PARTICIPANT_COUNTS:
        raise InvalidParticipantCountError(
            count, f"supported counts are {', '.join(str(c) for c in SUPPORTED_PARTICIPANT_COUNTS)}"
        )
    return count


class BracketManager:
    def __init__(self, name=DEFAULT_TOURNAMENT_NAME, participant_count=8, bracket_format=STANDARD,
                 strict_participant_counts=False, max_participants=DEFAULT_MAX_PARTICIPANTS,
                 name_template='Player {n}', rng=None):
        self.strict_participant_counts = strict_participant_counts
        self.max_participants = max_participants
        self.name_template = name_template
        self.rng = rng or random.Random()
        self.tournament_name = name
        self.participant_count = validate_participant_count(
            participant_count, strict_participant_counts, max_participants)
        self.bracket_format = self._validate_format(bracket_format)
        self.tournament = None
        self._listeners = []
        self._build()

    # -- configuration -----------------------------------------------------

    def _validate_format(self, bracket_format):
        if bracket_format not in BRACKET_FORMATS:
            raise ValueError(
                f"Unknown bracket format '{bracket_format}', expected one of {BRACKET_FORMATS}")
        return bracket_format

    def set_participant_count(self, count):
        """Change the count used by the next generate or reset."""
        self.participant_count = validate_participant_count(
            count, self.strict_participant_counts, self.max_participants)

    def set_bracket_format(self, bracket_format):
        self.bracket_format = self._validate_format(bracket_format)

    def set_tournament_name(self, name):
        self.tournament_name = name
        if self.tournament is not None:
            self.tournament.name = name
            self._notify()

    # -- notifications -----------------------------------------------------

    def subscribe(self, callback: Callable[[Dict], None]):
        """Register a callback that receives a snapshot after every mutation."""
        self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback):
        self._listeners.remove(callback)

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.to_dict()
        for callback in list(self._listeners):
            callback(snapshot)

    # -- generation --------------------------------------------------------

    def _build(self):
        participants = create_participants(self.participant_count, self.name_template)
        placement = seed_participants(participants, self.bracket_format, self.rng)
        rounds = build_rounds(placement)
        self.tournament = Tournament(
            name=self.tournament_name,
            participant_count=self.participant_count,
            max_participants=calculate_bracket_size(self.participant_count),
            bracket_format=self.bracket_format,
            rounds=rounds,
        )
        logger.info(
            f"Generated '{self.tournament_name}': {self.participant_count} participants, "
            f"{self.bracket_format} seeding, {len(rounds)} rounds"
        )

    def generate(self, participant_count=None, bracket_format=None):
        """
        Build a fresh tournament, discarding the current one.

        Arguments left as None keep their current values. Both are validated
        before anything changes.
        """
        count = self.participant_count
        if participant_count is not None:
            count = validate_participant_count(
                participant_count, self.strict_participant_counts, self.max_participants)
        fmt = self.bracket_format
        if bracket_format is not None:
            fmt = self._validate_format(bracket_format)

        self.participant_count = count
        self.bracket_format = fmt
        self._build()
        self._notify()
        return self.tournament

    def reset(self):
        """Discard all progress and reseed from the current settings."""
        logger.info(f"Resetting '{self.tournament_name}'")
        return self.generate()

    def clear(self):
        """
        Wipe every result while keeping the first round pairings.

        Later rounds are emptied since they are only ever filled by
        advancement.
        """
        for round_index, round_matches in enumerate(self.tournament.rounds):
            for match in round_matches:
                match.winner = None
                match.status = PENDING
                if round_index == 0:
                    match.update_bye()
                else:
                    match.player1 = None
                    match.player2 = None
                    match.is_bye = False
        self.tournament.champion = None
        logger.info(f"Cleared all results for '{self.tournament.name}'")
        self._notify()

    # -- accessors ---------------------------------------------------------

    @property
    def rounds(self) -> List[List[Match]]:
        return self.tournament.rounds

    @property
    def champion(self) -> Optional[Participant]:
        return self.tournament.champion

    def stats(self) -> Dict[str, int]:
        return calculate_bracket_stats(self.tournament.rounds)

    def get_match(self, round_index, slot_index) -> Match:
        rounds = self.tournament.rounds
        if (isinstance(round_index, bool) or not isinstance(round_index, int)
                or isinstance(slot_index, bool) or not isinstance(slot_index, int)):
            raise MatchNotFoundError(round_index, slot_index)
        if not 0 <= round_index < len(rounds) or not 0 <= slot_index < len(rounds[round_index]):
            raise MatchNotFoundError(round_index, slot_index)
        return rounds[round_index][slot_index]

    def _feeder_matches(self, round_index, slot_index) -> List[Match]:
        if round_index == 0:
            return []
        previous = self.tournament.rounds[round_index - 1]
        return [previous[i] for i in (slot_index * 2, slot_index * 2 + 1) if i < len(previous)]

    # -- progression -------------------------------------------------------

    def _advance(self, round_index, slot_index, winner):
        """Complete a match and move its winner forward."""
        match = self.tournament.rounds[round_index][slot_index]
        match.winner = winner
        match.status = COMPLETED

        if match is self.tournament.final_match:
            self.tournament.champion = winner
            logger.info(f"{winner.name} is the champion of '{self.tournament.name}'")
            return

        next_match = self.tournament.rounds[round_index + 1][slot_index // 2]
        side = SIDES[slot_index % 2]
        current = next_match.get_player(side)
        if current is not None:
            # First writer wins
            if current is not winner:
                logger.warning(
                    f"Round {round_index + 2} match {slot_index // 2} {side} already holds "
                    f"{current.name}, not replacing with {winner.name}"
                )
            return
        next_match.set_player(side, winner)
        next_match.update_bye()
        logger.debug(
            f"{winner.name} advances to round {round_index + 2}, match {slot_index // 2} ({side})"
        )

    def select_winner(self, round_index, slot_index, side) -> Participant:
        """
        Declare the participant on the given side the winner of a match.

        Raises MatchNotFoundError, AlreadyDecidedError, EmptySlotError,
        MatchNotReadyError or ValueError (unknown side). Nothing is changed
        when an error is raised.
        """
        match = self.get_match(round_index, slot_index)
        player = match.get_player(side)
        if match.is_completed:
            raise AlreadyDecidedError(round_index, slot_index)
        if player is None:
            raise EmptySlotError(round_index, slot_index, side)
        if any(not m.is_completed for m in self._feeder_matches(round_index, slot_index)):
            raise MatchNotReadyError(round_index, slot_index)

        self._advance(round_index, slot_index, player)
        self._notify()
        return player

    def simulate(self) -> Optional[Participant]:
        """
        Play out every outstanding match.

        Rounds are resolved in order since a round is only filled by the one
        before it. A lone participant wins by bye; otherwise the winner is
        picked at random. Matches with no participants stay pending.
        """
        if self.tournament.champion is not None:
            raise AlreadyCompleteError()

        resolved = 0
        for round_index, round_matches in enumerate(self.tournament.rounds):
            for slot_index, match in enumerate(round_matches):
                if match.is_completed:
                    continue
                players = match.populated_players()
                if not players:
                    continue
                winner = players[0] if len(players) == 1 else self.rng.choice(players)
                self._advance(round_index, slot_index, winner)
                resolved += 1

        logger.info(f"Simulated {resolved} matches for '{self.tournament.name}'")
        self._notify()
        return self.tournament.champion

    def rename_participant(self, round_index, slot_index, side, new_name) -> Participant:
        """
        Rename the participant in a slot.

        Participants are shared between rounds, so the new name shows
        everywhere they advanced. An empty slot of a pending match gets a new
        participant with no id or seed.
        """
        match = self.get_match(round_index, slot_index)
        player = match.get_player(side)
        name = new_name.strip() if isinstance(new_name, str) else ''
        if not name:
            raise InvalidNameError()

        if player is not None:
            logger.info(f"Renamed {player.name} to {name}")
            player.name = name
        else:
            if match.is_completed:
                raise AlreadyDecidedError(round_index, slot_index)
            player = Participant(name=name)
            match.set_player(side, player)
            match.update_bye()
            logger.info(f"Added {name} to round {round_index + 1}, match {slot_index} ({side})")

        self._notify()
        return player

    # -- snapshot ----------------------------------------------------------

    def to_dict(self) -> Dict:
        """Return a plain-data snapshot of the tournament."""
        tournament = self.tournament
        total_rounds = len(tournament.rounds)
        rounds = []
        for round_index, round_matches in enumerate(tournament.rounds):
            matches = []
            for slot_index, match in enumerate(round_matches):
                match_data = match.to_dict()
                match_data.update({
                    'match_id': f"match-{round_index + 1}-{slot_index}",
                    'round': round_index,
                    'slot': slot_index,
                })
                matches.append(match_data)
            rounds.append({
                'index': round_index,
                'name': get_round_name(round_index, total_rounds),
                'matches': matches,
            })

        return {
            'name': tournament.name,
            'participant_count': tournament.participant_count,
            'max_participants': tournament.max_participants,
            'bracket_format': tournament.bracket_format,
            'total_rounds': total_rounds,
            'rounds': rounds,
            'champion': tournament.champion.to_dict() if tournament.champion else None,
            'stats': calculate_bracket_stats(tournament.rounds),
        }
