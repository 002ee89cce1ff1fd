from __future__ import annotations

from typing import Protocol

from pool_pricing.domain.entities.token import Token


class TokenPort(Protocol):
    def get(self, token_id: str) -> Token | None:
        ...

    def get_by_address(self, address: str) -> Token | None:
        ...

    def add(self, token: Token) -> Token:
        ...

    def save(self, token: Token) -> None:
        ...

    def list_all(self) -> list[Token]:
        ...
