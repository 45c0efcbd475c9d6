"""
Bracket error taxonomy.

Routes translate these into HTTP responses; nothing here is retried.
"""


class BracketError(Exception):
    """Base exception for bracket engine errors"""

    pass


class ResultStoreError(BracketError):
    """The result store could not be read or written"""

    pass


class BracketValidationError(BracketError):
    """Input rejected before any store call"""

    pass


class BracketNotFoundError(BracketError):
    """Sub-event, group, stage or result row does not exist"""

    pass


class BracketDriftError(BracketError):
    """A stage no longer matches the bracket derived from the current roster"""

    def __init__(self, stage_id: str, message: str):
        super().__init__(message)
        self.stage_id = stage_id
