"""Frontend backends, selected by name from configuration."""

from __future__ import annotations

from collections.abc import Callable

from launchr.domain.ports.frontend import Frontend

from .stdio import StdioFrontend

FrontendFactory = Callable[..., Frontend]

FRONTEND_BACKENDS: dict[str, FrontendFactory] = {
    "stdio": StdioFrontend,
}


def create_frontend(backend: str, **options: object) -> Frontend:
    try:
        factory = FRONTEND_BACKENDS[backend]
    except KeyError:
        raise ValueError(
            f"unknown frontend backend {backend!r}; available: {sorted(FRONTEND_BACKENDS)}"
        ) from None
    return factory(**options)


__all__ = ["FRONTEND_BACKENDS", "StdioFrontend", "create_frontend"]
