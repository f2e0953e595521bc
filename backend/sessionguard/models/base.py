"""Column and representation mixins for mapped models."""

from __future__ import annotations

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column


class PKMixin:
    """Integer surrogate key ``id``; natural keys are enforced by constraints."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """
    ``__repr__`` built from an allow-list of attributes.

    Subclasses list safe fields in ``__repr_fields__``. Anything not listed
    (token strings in particular) never reaches logs or tracebacks.
    """

    __repr_fields__: tuple[str, ...] = ("id",)

    def __repr__(self) -> str:
        parts = " ".join(f"{name}={getattr(self, name, None)!r}" for name in self.__repr_fields__)
        return f"<{type(self).__name__} {parts}>"
