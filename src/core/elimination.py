"""
Single elimination seeding and bracket construction.
"""
import logging
import math
import random
from typing import List, Optional

from .errors import EmptyPairingError, InvalidParticipantCountError
from .models import Match, Participant

logger = logging.getLogger(__name__)

STANDARD = 'standard'
RANDOM = 'random'
BRACKET_FORMATS = (STANDARD, RANDOM)

# Placement order by 1-indexed seed. Adjacent entries meet in the first round,
# and top seeds can only meet in later rounds.
STANDARD_SEED_ORDERS = {
    2: [1, 2],
    4: [1, 4, 2, 3],
    8: [1, 8, 4, 5, 3, 6, 2, 7],
    16: [1, 16, 8, 9, 5, 12, 4, 13, 6, 11, 3, 14, 7, 10, 2, 15],
}
SUPPORTED_PARTICIPANT_COUNTS = tuple(sorted(STANDARD_SEED_ORDERS))


def get_round_name(round_index: int, total_rounds: int) -> str:
    """Get the display name of a round from its position in the bracket."""
    if round_index == 0:
        return "Round 1"
    elif round_index == total_rounds - 1:
        return "Final"
    elif round_index == total_rounds - 2 and total_rounds > 2:
        return "Semi Final"
    elif round_index == total_rounds - 3 and total_rounds > 3:
        return "Quarter Final"
    else:
        return f"Round {round_index + 1}"


def calculate_bracket_size(num_participants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_participants <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_participants))


def create_participants(count: int, name_template: str = 'Player {n}') -> List[Participant]:
    """
    Create the default participant list, ordered by seed.

    Participant ids and seeds both run from 1 to count.
    """
    return [
        Participant(name=name_template.format(n=n), id=n, seed=n)
        for n in range(1, count + 1)
    ]


def generate_standard_placement(participants: List[Participant]) -> List[Optional[Participant]]:
    """
    Place seeded participants using the fixed interleaving tables.

    For 8 participants the order is seeds [1, 8, 4, 5, 3, 6, 2, 7], giving
    first round matchups 1v8, 4v5, 3v6, 2v7.

    Participant counts without a table fall back to sequential pairing
    (1v2, 3v4, ...). The fallback makes no attempt to keep top seeds apart.
    """
    num_participants = len(participants)
    bracket_size = calculate_bracket_size(num_participants)
    order = STANDARD_SEED_ORDERS.get(num_participants)

    if order is None:
        logger.info(
            f"No standard seeding table for {num_participants} participants, pairing sequentially"
        )
        placement = list(participants)
    else:
        placement = [participants[seed - 1] for seed in order]

    placement.extend([None] * (bracket_size - len(placement)))
    return placement


def generate_random_placement(participants: List[Participant],
                              rng: Optional[random.Random] = None) -> List[Optional[Participant]]:
    """Shuffle participants uniformly and pair them in the shuffled order."""
    rng = rng or random.Random()
    placement = list(participants)
    rng.shuffle(placement)
    placement.extend([None] * (calculate_bracket_size(len(participants)) - len(placement)))
    return placement


def seed_participants(participants: List[Participant], mode: str = STANDARD,
                      rng: Optional[random.Random] = None) -> List[Optional[Participant]]:
    """
    Produce the first round placement for participants sorted by seed.

    Returns a list whose length is the bracket size. Entries after the last
    participant are None (bye placeholders).
    """
    if mode == STANDARD:
        return generate_standard_placement(participants)
    elif mode == RANDOM:
        return generate_random_placement(participants, rng)
    raise ValueError(f"Unknown bracket format '{mode}', expected one of {BRACKET_FORMATS}")


def build_rounds(placement: List[Optional[Participant]]) -> List[List[Match]]:
    """
    Build the full round tree from a placement.

    Round 1 pairs placement[2k] with placement[2k + 1]. Pairs of None at the
    end of the placement are padding and produce no match; a pair of None
    anywhere else means the seeding is broken and raises EmptyPairingError.

    Every later round holds ceil(previous / 2) empty pending matches, down to
    a single final.
    """
    pairs = []
    for i in range(0, len(placement), 2):
        player1 = placement[i]
        player2 = placement[i + 1] if i + 1 < len(placement) else None
        pairs.append((player1, player2))

    while pairs and pairs[-1][0] is None and pairs[-1][1] is None:
        pairs.pop()

    num_participants = sum(1 for p in placement if p is not None)
    if num_participants < 2:
        raise InvalidParticipantCountError(num_participants, "a bracket needs at least 2 participants")

    first_round = []
    for slot_index, (player1, player2) in enumerate(pairs):
        if player1 is None and player2 is None:
            raise EmptyPairingError(slot_index)
        first_round.append(Match(player1, player2))

    rounds = [first_round]
    while len(rounds[-1]) > 1:
        num_matches = math.ceil(len(rounds[-1]) / 2)
        rounds.append([Match() for _ in range(num_matches)])

    logger.debug(
        f"Built {len(rounds)} rounds for {num_participants} participants "
        f"({len(first_round)} first round matches)"
    )
    return rounds
