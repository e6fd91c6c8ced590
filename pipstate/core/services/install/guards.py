"""
Guard builders — the idempotency half of a directive.

The "is this package already in the wanted state" question is answered
by a PackageCheck collaborator. The default, PipFreezeCheck, asks pip
itself through ``pip freeze --all`` and, as a fallback for pips whose
freeze output is incomplete, ``pip list``.
"""

from __future__ import annotations

from typing import Protocol

from pipstate.core.models.directive import GuardKind, GuardPredicate
from pipstate.core.models.request import EnsureKind, EnsureState
from pipstate.core.services.install import fragments

# ``pip list`` prints "name (1.0)" on old pips; rewrite to "name==1.0".
_LIST_AS_FREEZE = "sed -e 's/[ ]\\+/==/' -e 's/[()]//g'"
_SEARCH_LATEST = "INSTALLED.*latest"


class PackageCheck(Protocol):
    """Produces a shell expression that exits 0 when ``name`` satisfies ``ensure``."""

    def expression(self, pip: str, name: str, ensure: EnsureState) -> str: ...


def _literal(text: str) -> str:
    """Escape the dots of a name or version for grep."""
    return text.replace(".", "\\.")


def installed_regex(name: str, ensure: EnsureState) -> str:
    """Anchored regex matching the freeze line of a satisfying install."""
    name = _literal(name)
    if ensure.kind == EnsureKind.EXACT:
        return f"^{name}=={_literal(ensure.version or '')}$"
    if "==" in name:
        return f"^{name}$"
    return f"^{name}=="


class PipFreezeCheck:
    """Checks installed state with ``pip freeze --all`` / ``pip list``."""

    def expression(self, pip: str, name: str, ensure: EnsureState) -> str:
        grep = fragments.grep_expression(installed_regex(name, ensure))
        freeze = f"{pip} freeze --all | {grep}"
        if ensure.is_absent:
            return freeze
        return f"{freeze} || {pip} list | {_LIST_AS_FREEZE} | {grep}"


def package_guard(
    check: PackageCheck,
    pip: str,
    name: str,
    ensure: EnsureState,
) -> GuardPredicate:
    """``unless`` satisfied, or ``onlyif`` installed for removals."""
    kind = GuardKind.ONLYIF if ensure.is_absent else GuardKind.UNLESS
    return GuardPredicate(kind=kind, expression=check.expression(pip, name, ensure))


def search_guard(pip: str, name: str, proxy_flag: str | None) -> GuardPredicate:
    """``unless`` pip search reports the installed copy is the latest.

    The proxy fragment is forwarded exactly as rendered for the install
    command. The index fragment never is, so the guard always queries
    pip's default index even when the install uses ``--index-url``.
    """
    search = fragments.assemble(pip, "search", proxy_flag, fragments.quote(name))
    expression = f"{search} | grep -i {fragments.quote(_SEARCH_LATEST)}"
    return GuardPredicate(kind=GuardKind.UNLESS, expression=expression)


def directory_guard(path: str, kind: GuardKind) -> GuardPredicate:
    """Plain ``test -d`` guard for directory-shaped resources."""
    return GuardPredicate(kind=kind, expression=f"test -d {fragments.quote(path)}")
