"""Exceptions raised by the ranking engine."""


class RankingError(Exception):
    """Base class for ranking engine errors."""


class UnknownRulesetError(RankingError, KeyError):
    """The requested ranking version does not exist in the league."""

    def __init__(self, version_id: int):
        super().__init__(f"Unknown ranking version: {version_id}")
        self.version_id = version_id

    def __str__(self) -> str:
        return self.args[0]


class IncompleteMatchDataError(RankingError):
    """
    Loaded matches are not enough to infer an edition's structure.

    Only the edition being scored is affected; callers skip it and go on.
    """

    def __init__(self, edition_id: int, reason: str):
        super().__init__(f"Edition {edition_id}: {reason}")
        self.edition_id = edition_id
        self.reason = reason
