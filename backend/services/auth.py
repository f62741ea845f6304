from __future__ import annotations

import hashlib
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import User


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(db: Session, user: User) -> str:
    """
    Génère un nouveau bearer token pour `user`.
    Seul le hash est persisté ; l'ancien token devient invalide.
    """
    token = secrets.token_urlsafe(32)
    user.token_hash = hash_token(token)
    db.flush()
    return token


def resolve_user(db: Session, token: str | None) -> User | None:
    if not token:
        return None
    return (
        db.execute(
            select(User)
            .where(User.token_hash == hash_token(token))
            .where(User.active.is_(True))
        )
        .scalars()
        .first()
    )
