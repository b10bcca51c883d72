PENDING = 'pending'
COMPLETED = 'completed'

SIDES = ('player1', 'player2')


class Participant:
    def __init__(self, name, id=None, seed=None):
        self.id = id
        self.name = name
        self.seed = seed  # None for participants added by a name edit

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'seed': self.seed}

    def __repr__(self):
        return f"Participant(id={self.id}, name={self.name}, seed={self.seed})"


class Match:
    def __init__(self, player1=None, player2=None):
        self.player1 = player1
        self.player2 = player2
        self.winner = None
        self.status = PENDING
        self.is_bye = False
        self.update_bye()

    def get_player(self, side):
        if side not in SIDES:
            raise ValueError(f"Unknown side '{side}', expected one of {SIDES}")
        return getattr(self, side)

    def set_player(self, side, participant):
        if side not in SIDES:
            raise ValueError(f"Unknown side '{side}', expected one of {SIDES}")
        setattr(self, side, participant)

    def update_bye(self):
        """A match is a bye when exactly one of its slots is filled."""
        self.is_bye = (self.player1 is None) != (self.player2 is None)

    def populated_players(self):
        return [p for p in (self.player1, self.player2) if p is not None]

    @property
    def is_completed(self):
        return self.status == COMPLETED

    def to_dict(self):
        return {
            'player1': self.player1.to_dict() if self.player1 else None,
            'player2': self.player2.to_dict() if self.player2 else None,
            'winner': self.winner.to_dict() if self.winner else None,
            'status': self.status,
            'is_bye': self.is_bye,
        }

    def __repr__(self):
        return (f"Match(player1={self.player1}, player2={self.player2}, "
                f"winner={self.winner}, status={self.status}, is_bye={self.is_bye})")


class Tournament:
    def __init__(self, name, participant_count, max_participants, bracket_format, rounds):
        self.name = name
        self.participant_count = participant_count
        self.max_participants = max_participants
        self.bracket_format = bracket_format
        self.rounds = rounds
        self.champion = None

    @property
    def total_rounds(self):
        return len(self.rounds)

    @property
    def final_match(self):
        return self.rounds[-1][0] if self.rounds else None

    def __repr__(self):
        return (f"Tournament(name={self.name}, participant_count={self.participant_count}, "
                f"rounds={self.total_rounds}, champion={self.champion})")
