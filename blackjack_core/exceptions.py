"""Exception hierarchy for the round engine.

Invalid player actions are never raised; the engine ignores them. The classes
here cover the two failure modes that must surface: bad configuration, caught
before a round starts, and broken invariants, which are programmer errors.
"""


class BlackjackError(Exception):
    """Base class for round engine errors."""


class ConfigurationError(BlackjackError, ValueError):
    """House-rule or environment value outside its allowed domain."""


class InvariantViolation(BlackjackError, AssertionError):
    """Engine state that correct usage can never produce.

    Raised for an exhausted shoe mid-round, a negative chip count or other
    malformed state. Not meant to be caught and recovered from.
    """
