from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker

from .models import LdapSettings


@contextmanager
def db_session(factory: sessionmaker) -> Iterator[Session]:
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_or_create_settings(db: Session) -> LdapSettings:
    st = db.get(LdapSettings, 1)
    if st:
        return st
    st = LdapSettings(id=1)
    db.add(st)
    db.commit()
    db.refresh(st)
    return st
