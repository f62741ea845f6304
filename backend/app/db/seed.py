from __future__ import annotations

import sys

from sqlalchemy import select

from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import User
from backend.services.auth import issue_token


def run_seed(name: str = "ADMIN") -> str:
    """
    Crée l'utilisateur `name` s'il n'existe pas et lui attribue un nouveau token.
    Le token n'est affiché qu'une fois : seul son hash est stocké.
    """
    db = SessionLocal()
    try:
        user = db.scalar(select(User).where(User.name == name))
        if not user:
            user = User(name=name, active=True)
            db.add(user)
            db.flush()

        token = issue_token(db, user)
        db.commit()

        print(f"SEED OK: user={name}")
        print(f"Bearer token: {token}")
        return token
    finally:
        db.close()


if __name__ == "__main__":
    run_seed(*sys.argv[1:2])
