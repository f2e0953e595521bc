"""Transaction boundary used by the SQL refresh-token store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType


class UnitOfWork(ABC):
    """
    One store operation, one transaction.

    Used as a context manager: a clean exit commits, an exception rolls back
    and propagates. Implementations expose the repositories they bind to the
    transaction as attributes (``refresh_tokens``).
    """

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
