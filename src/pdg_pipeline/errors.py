"""Input error taxonomy for the hit annotation pipeline."""

from typing import Optional


class PipelineInputError(Exception):
    """Base class for errors tied to a specific input table.

    Carries the source name plus the row index and column name when known,
    so the message alone is enough to locate the offending cell.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        row: Optional[int] = None,
        column: Optional[str] = None,
    ):
        self.source = source
        self.row = row
        self.column = column

        context = []
        if source is not None:
            context.append(f"source={source}")
        if row is not None:
            context.append(f"row={row}")
        if column is not None:
            context.append(f"column={column}")

        full_message = f"{message} ({', '.join(context)})" if context else message
        super().__init__(full_message)


class MissingColumnError(PipelineInputError):
    """A required column is absent from a table header."""


class MalformedInputError(PipelineInputError):
    """A row's field count does not match the declared header."""


class TypeMismatchError(PipelineInputError):
    """A numeric field could not be parsed."""


class EmptyJoinResultError(PipelineInputError, UserWarning):
    """No hit survived the gene-type join.

    Informational only: issued through warnings.warn, the run still
    produces empty, well-formed summary tables.
    """
