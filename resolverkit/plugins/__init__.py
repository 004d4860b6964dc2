"""Built-in plugins shipped with resolverkit.

Modules under this package register themselves with the default catalog via
`resolverkit.registry.register_plugin(...)`. Call `discover()` before building a
resolver that relies on the built-in markers.
"""

from __future__ import annotations

import importlib
import pkgutil


def discover() -> None:
    for module in pkgutil.iter_modules(__path__, prefix=__name__ + "."):
        importlib.import_module(module.name)
