"""Request/result service seam.

A service turns one validated request into one result. Expected failures
are raised as :class:`ServiceFailure` and reach the CLI, which prints the
message and hint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .errors import ServiceFailure

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


class BaseService(ABC, Generic[RequestT, ResultT]):
    """Callable service; subclasses provide ``_run``.

    ``_handle_failure`` sees every :class:`ServiceFailure` raised by ``_run``
    and may return a substitute result instead of re-raising.
    """

    def __call__(self, request: RequestT) -> ResultT:
        try:
            return self._run(request)
        except ServiceFailure as failure:
            return self._handle_failure(failure)

    @abstractmethod
    def _run(self, request: RequestT) -> ResultT: ...

    def _handle_failure(self, error: ServiceFailure) -> ResultT:
        raise error
