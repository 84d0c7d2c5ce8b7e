"""Rules layer of the Nemeths simulator.

Everything a generation needs lives here and runs purely in memory:

* Dataclasses describing every entity (see :mod:`models`).
* Enumerations and the fixed lookup tables (:mod:`enums`, :mod:`catalog`).
* Tunable rule constants (see :mod:`rules_config`).
* The map, economy and combat rule functions, and the day scheduler in
  :mod:`game`.

:mod:`game` is not imported eagerly because it depends on the agent
package, which itself builds on this one.
"""

from . import catalog, combat, economy, enums, map, models, rules_config

__all__ = [
    "catalog",
    "combat",
    "economy",
    "enums",
    "map",
    "models",
    "rules_config",
]
