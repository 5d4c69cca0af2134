"""Adapter protocol for the completion service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from casegen.core.types import CompletionPayload


@runtime_checkable
class CompletionAdapter(Protocol):
    """Sends one compiled payload and returns the reply text.

    Implementations map every non-success outcome to the typed upstream
    errors in `casegen.exceptions`.
    """

    async def complete(self, payload: CompletionPayload) -> str: ...

    async def aclose(self) -> None: ...
