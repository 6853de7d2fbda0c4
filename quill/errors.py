from typing import List


class QuillError(Exception):
    """Base class for host-level errors raised at the pipeline boundary."""


class ParserError(QuillError):
    """Raised when a program with parser diagnostics is about to be run."""
    def __init__(self, errors: List[str]):
        super().__init__(f"{len(errors)} parser error(s): " + '; '.join(errors))
        self.errors = list(errors)
