"""Exceptions raised by Finance Brain commands."""


class FinanceError(Exception):
    """Base exception for finance operations."""
    pass


class NotInitializedError(FinanceError):
    """
    A command needs a finance page that does not exist yet.

    Raised instead of crashing so the command layer can tell the user
    to run 'Finance: Initialize' first.
    """

    def __init__(self, page_name: str):
        self.page_name = page_name
        super().__init__(
            f"Page '{page_name}' not found. Run 'Finance: Initialize' first."
        )
