"""Token types shared by the auth layer and the Graph client."""

from __future__ import annotations

from typing import Callable, NamedTuple, Sequence


class AccessToken(NamedTuple):
    token: str
    # Unix timestamp.
    expires_on: int


# Called with the scopes a Graph request needs; must not prompt the user.
TokenProvider = Callable[[Sequence[str]], AccessToken]


__all__ = ["AccessToken", "TokenProvider"]
