from __future__ import annotations

from typing import Type

from gedcom_transport.core.exceptions import CancellationError


class CancellationToken:
    """
    Cooperative cancellation flag polled at line/chunk checkpoints.

    ``cancel()`` only records the request; the owning loop calls
    ``raise_if_cancelled()`` between units of work.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def reset(self) -> None:
        self._cancelled = False

    def raise_if_cancelled(
        self,
        error_cls: Type[CancellationError] = CancellationError,
        message: str = "Operation cancelled",
    ) -> None:
        if self._cancelled:
            raise error_cls(message)
