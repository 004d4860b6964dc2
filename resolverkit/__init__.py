"""Two-phase resolver kernel (checks + activities around a transformation).

The engine, registry and result types here are domain-agnostic. Concrete
transformations, checks and activities are supplied by the consuming
application, either explicitly or via marker-based plugin discovery.
"""

from resolverkit.capabilities import (
    Activity,
    ActivityBase,
    Check,
    CheckBase,
    FunctionActivity,
    FunctionCheck,
    contributor_name,
)
from resolverkit.engine.pipeline import STATE_SEQUENCE, ResolutionState, Resolver
from resolverkit.engine.recorder import (
    DefaultPhaseRecorder,
    NullPhaseRecorder,
    PhaseRecorder,
    RecordingPhaseRecorder,
)
from resolverkit.errors import CheckFailure, DiscoveryFault, ResolutionFailure
from resolverkit.ordering import (
    DEFAULT_ORDER,
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    Ordered,
    compare_priority,
    priority_of,
    sort_by_priority,
)
from resolverkit.registry import (
    DEFAULT_CATALOG,
    SLOTS,
    ComponentCatalog,
    PluginCatalog,
    PluginRegistry,
    Slot,
    SlotMarkers,
    populate_from_catalog,
    register_plugin,
)
from resolverkit.results import CheckResult, CombinedResult, ContributorResult

__all__ = [
    "Activity",
    "ActivityBase",
    "Check",
    "CheckBase",
    "CheckFailure",
    "CheckResult",
    "CombinedResult",
    "ComponentCatalog",
    "ContributorResult",
    "DEFAULT_CATALOG",
    "DEFAULT_ORDER",
    "DefaultPhaseRecorder",
    "DiscoveryFault",
    "FunctionActivity",
    "FunctionCheck",
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "NullPhaseRecorder",
    "Ordered",
    "PhaseRecorder",
    "PluginCatalog",
    "PluginRegistry",
    "RecordingPhaseRecorder",
    "ResolutionFailure",
    "ResolutionState",
    "Resolver",
    "SLOTS",
    "STATE_SEQUENCE",
    "Slot",
    "SlotMarkers",
    "compare_priority",
    "contributor_name",
    "populate_from_catalog",
    "priority_of",
    "register_plugin",
    "sort_by_priority",
]
