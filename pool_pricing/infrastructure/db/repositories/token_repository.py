from __future__ import annotations

from sqlalchemy import select

from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.token import Token
from pool_pricing.infrastructure.db.engine import session_factory_for
from pool_pricing.infrastructure.db.mappers.pricing_mapper import apply_token_to_model, map_model_to_token
from pool_pricing.infrastructure.db.models.pricing import TokenModel


class SqlTokenRepository(TokenPort):
    def __init__(self, engine):
        self._sessions = session_factory_for(engine)

    def get(self, token_id: str) -> Token | None:
        with self._sessions() as session:
            row = session.get(TokenModel, token_id)
            return map_model_to_token(row) if row is not None else None

    def get_by_address(self, address: str) -> Token | None:
        with self._sessions() as session:
            row = session.execute(
                select(TokenModel).where(TokenModel.address == address).limit(1)
            ).scalar_one_or_none()
            return map_model_to_token(row) if row is not None else None

    def add(self, token: Token) -> Token:
        with self._sessions.begin() as session:
            session.add(apply_token_to_model(token, TokenModel()))
        return token

    def save(self, token: Token) -> None:
        with self._sessions.begin() as session:
            row = session.get(TokenModel, token.id)
            if row is None:
                session.add(apply_token_to_model(token, TokenModel()))
            else:
                apply_token_to_model(token, row)

    def list_all(self) -> list[Token]:
        with self._sessions() as session:
            rows = session.execute(select(TokenModel).order_by(TokenModel.id)).scalars().all()
            return [map_model_to_token(row) for row in rows]
