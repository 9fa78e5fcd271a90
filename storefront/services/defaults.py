# storefront/services/defaults.py
"""
Single-default invariant: at most one row per scope has ``is_default``.

The write path is explicit rather than a save hook:

    save_with_default(record)
      1) lock the rows currently holding the default in the record's scope
      2) demote every one of them except the record itself (one UPDATE)
      3) write the record
      4) confirm exactly one default is left in scope, then commit

Steps 1-4 run in one transaction. The partial unique index each model
declares on its scope rejects a second default written by a concurrent
transaction, which surfaces here as ConstraintViolation and aborts the
losing write.
"""
from __future__ import annotations
import logging

from sqlalchemy import func, select

from ..errors import ConstraintViolation
from ..extensions import db
from . import store

log = logging.getLogger(__name__)

def enforce_default(record, find_many=None, update_many=None) -> int:
    """
    Demote every other default in ``record``'s scope. Returns how many were demoted.

    No-op when the record is not flagged as default. The record itself is
    excluded by identity, never by scope.
    """
    if not record.is_default:
        return 0

    find_many = find_many or store.find_many
    update_many = update_many or store.update_many

    model = type(record)
    scope = record.default_scope()

    holders = find_many(model, *scope, model.is_default.is_(True), lock=True)
    peer_ids = [r.id for r in holders if r.id != record.id]
    if not peer_ids:
        return 0

    demoted = update_many(
        model,
        (*scope, model.is_default.is_(True), model.id.in_(peer_ids)),
        {"is_default": False},
    )
    if demoted != len(peer_ids):
        log.error("default demotion incomplete in scope %s: %s of %s rows",
                  record.default_scope_key(), demoted, len(peer_ids))
        raise ConstraintViolation("could not demote the previous default",
                                  {"scope": list(record.default_scope_key())})

    log.info("demoted %s default(s) in scope %s", demoted, record.default_scope_key())
    return demoted

def count_defaults(model, scope) -> int:
    stmt = select(func.count()).select_from(model).where(*scope, model.is_default.is_(True))
    return db.session.execute(stmt).scalar_one()

def save_with_default(record, *, commit=True, find_many=None, update_many=None):
    """Write a defaultable record, keeping its scope at a single default."""
    with store.guard():
        # pending changes on the record must not flush before its peers are demoted
        with db.session.no_autoflush:
            enforce_default(record, find_many, update_many)
        db.session.add(record)
        db.session.flush()

        if record.is_default:
            holders = count_defaults(type(record), record.default_scope())
            if holders != 1:
                raise ConstraintViolation("scope holds more than one default",
                                          {"scope": list(record.default_scope_key())})
        if commit:
            db.session.commit()
    return record
