# storefront/services/store.py
"""
Thin persistence collaborator over the Flask-SQLAlchemy session.

Every failure coming out of SQLAlchemy is translated into one of the two
store error kinds (``StoreUnavailable`` / ``ConstraintViolation``) and the
session is rolled back so the triggering write never commits half-done.
"""
from __future__ import annotations
import logging
from contextlib import contextmanager

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from ..errors import ConstraintViolation, StoreError, StoreUnavailable
from ..extensions import db

log = logging.getLogger(__name__)

@contextmanager
def guard():
    try:
        yield db.session
    except StoreError:
        db.session.rollback()
        raise
    except IntegrityError as e:
        db.session.rollback()
        log.warning("constraint violated: %s", e.orig)
        raise ConstraintViolation("write rejected by a store constraint") from e
    except (OperationalError, DBAPIError) as e:
        db.session.rollback()
        if getattr(e, "connection_invalidated", False) or isinstance(e, OperationalError):
            log.error("store unavailable: %s", e.orig)
            raise StoreUnavailable("store unavailable") from e
        raise ConstraintViolation("write rejected by the store") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        log.error("store error: %s", e)
        raise StoreUnavailable("store error") from e

def find_one(model, record_id):
    with guard():
        return db.session.get(model, record_id)

def find_many(model, *criteria, order_by=None, lock=False):
    stmt = select(model).where(*criteria)
    if order_by is not None:
        stmt = stmt.order_by(order_by)
    if lock:
        stmt = stmt.with_for_update()
    with guard():
        return db.session.execute(stmt).unique().scalars().all()

def update_many(model, criteria, patch: dict) -> int:
    stmt = (
        update(model)
        .where(*criteria)
        .values(**patch)
        .execution_options(synchronize_session="fetch")
    )
    with guard():
        return db.session.execute(stmt).rowcount

def save(record, *, commit=True):
    with guard():
        db.session.add(record)
        db.session.flush()
        if commit:
            db.session.commit()
    return record

def delete(record, *, commit=True):
    with guard():
        db.session.delete(record)
        if commit:
            db.session.commit()

def commit():
    with guard():
        db.session.commit()
