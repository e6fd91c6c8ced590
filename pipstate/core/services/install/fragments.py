"""
Command fragments — escaping and fixed-order assembly.

Every optional piece of a generated command is modelled as
``str | None``: None means "not emitted at all". ``assemble`` is the
only place fragments are joined, so output stays single-spaced and
stable no matter which options are set.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Sequence

# Shell variable set by the wheel preamble. Left unquoted on purpose:
# when empty it must vanish, when set it must split into two words.
WHEEL_FLAG_VAR = "$wheel_support_flag"
NO_BINARY_FLAG = "--no-binary :all:"
QUIET = "> /dev/null 2>&1"


def quote(value: str) -> str:
    """Shell-quote a single word. Safe words come back unchanged."""
    return shlex.quote(value)


def option(flag: str, value: str | None) -> str | None:
    """Render ``--flag=value`` with the value quoted, or None if unset."""
    if not value:
        return None
    return f"{flag}={quote(value)}"


def args(values: Sequence[str]) -> str | None:
    """Render pass-through arguments, each quoted, or None if empty."""
    if not values:
        return None
    return " ".join(quote(v) for v in values)


def package_token(name: str, extras: Sequence[str] = ()) -> str:
    """``name`` or ``name[e1,e2]`` with extras in the given order."""
    if not extras:
        return name
    return f"{name}[{','.join(extras)}]"


def assemble(*fragments: str | None) -> str:
    """Join the present fragments with single spaces, in order."""
    return " ".join(f for f in fragments if f)


def chain(commands: Iterable[str]) -> str:
    """Join commands with ``&&`` so each runs only if the previous succeeded."""
    return " && ".join(commands)


def grep_expression(regex: str) -> str:
    """Case-insensitive grep for an anchored regex."""
    return assemble("grep -i -e", quote(regex))


def wheel_preamble(pip: str) -> str:
    """Probe-and-branch fragment deciding ``$wheel_support_flag`` at run time.

    If ``pip wheel`` exists but the ``wheel`` package is missing,
    the flag becomes ``--no-binary :all:``; otherwise it stays empty.
    """
    return (
        f"{pip} wheel --help {QUIET} && "
        f"{{ {pip} show wheel {QUIET} || "
        f"wheel_support_flag={quote(NO_BINARY_FLAG)}; }}"
    )
