"""
Domain models — Pydantic types for pipstate.

All models are re-exported here for convenient access:

    from pipstate.core.models import RequestSpec, Directive, ResolvedFact
"""

from pipstate.core.models.action import Action, Receipt
from pipstate.core.models.directive import Directive, GuardKind, GuardPredicate
from pipstate.core.models.fact import FactProbe, ResolvedFact
from pipstate.core.models.manifest import Manifest, PackageDefaults
from pipstate.core.models.request import (
    DEFAULT_SEARCH_PATH,
    EnsureKind,
    EnsureState,
    InterpreterProvider,
    RequestSpec,
    VenvRequest,
)

__all__ = [
    "DEFAULT_SEARCH_PATH",
    # action.py
    "Action",
    # directive.py
    "Directive",
    # request.py
    "EnsureKind",
    "EnsureState",
    # fact.py
    "FactProbe",
    "GuardKind",
    "GuardPredicate",
    "InterpreterProvider",
    # manifest.py
    "Manifest",
    "PackageDefaults",
    "Receipt",
    "RequestSpec",
    "ResolvedFact",
    "VenvRequest",
]
