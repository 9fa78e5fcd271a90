# storefront/model/mixins.py
from __future__ import annotations


class DefaultableMixin:
    """
    A model where at most one row per scope may carry ``is_default = True``.

    Subclasses declare an ``is_default`` column and describe their scope:
      - default_scope()      -> SQL criteria selecting every row in the scope
      - default_scope_key()  -> hashable tuple naming the scope (logging, tests)
    """

    def default_scope(self) -> tuple:
        raise NotImplementedError

    def default_scope_key(self) -> tuple:
        raise NotImplementedError
