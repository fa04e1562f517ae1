"""
Exception types shared by the generators and the level session.

Generators raise; the session catches and reports the message verbatim.
The partition generator never raises for bad sizes, the constraint
generator can fail in three distinct ways (see GenerationError.kind).
"""


class LevelForgeError(Exception):
    pass


class ParameterError(LevelForgeError):
    """Caller supplied inconsistent sizes or budgets."""
    pass


class GenerationError(LevelForgeError):
    """Base class for generator failures.

    Attributes:
        kind: Stable identifier of the failure, for callers that want to
            suggest a different seed vs. a looser tileset.
    """
    kind = "generation_failed"


class GenerationContradiction(GenerationError):
    """A cell domain was emptied and could not be recovered."""
    kind = "contradiction"


class BacktrackBudgetExhausted(GenerationContradiction):
    kind = "backtrack_exhausted"


class NoAdmissibleTile(GenerationContradiction):
    kind = "no_admissible_tile"


class IterationBudgetExceeded(GenerationError):
    kind = "iteration_cap"


class LevelIOError(LevelForgeError):
    pass


class SessionError(LevelForgeError):
    pass
