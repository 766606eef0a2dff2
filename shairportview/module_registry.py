"""
Module registry for the decoder's subsystems.

Each subsystem registers a named logger plus a ``--debug-<name>`` flag so the
command line tools can narrow debug output to the parts being investigated.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

CATEGORIES = ("input", "core", "output", "debug")


@dataclass
class Subsystem:
    """One registered part of the package."""

    name: str
    description: str
    logger_name: str
    debug_flag: str
    category: str = "core"

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(self.logger_name)


class ModuleRegistry:
    """Registry of subsystems with their loggers, debug flags and categories."""

    def __init__(self):
        """Initialize an empty registry."""
        self._modules: Dict[str, Subsystem] = {}

    def register_module(
        self,
        name: str,
        description: str,
        logger_name: str,
        debug_flag: str,
        category: str = "core",
    ) -> Subsystem:
        """Register a subsystem. Registering the same name again replaces it."""
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category {category!r} for module {name}")
        subsystem = Subsystem(name, description, logger_name, debug_flag, category)
        self._modules[name] = subsystem
        return subsystem

    def get_logger(self, name: str) -> logging.Logger:
        """Return the logger registered for ``name``."""
        subsystem = self._modules.get(name)
        if subsystem is None:
            raise KeyError(f"Unknown module: {name}")
        return subsystem.logger

    def get_modules_by_category(self, category: str) -> List[Subsystem]:
        """Modules in ``category``, sorted by name."""
        return sorted(
            (subsystem for subsystem in self._modules.values() if subsystem.category == category),
            key=lambda subsystem: subsystem.name,
        )

    def get_debug_flags(self) -> Dict[str, str]:
        """Get mapping of debug CLI flags to module names."""
        return {subsystem.debug_flag: name for name, subsystem in self._modules.items()}

    def logger_names_for_flags(self, args: Iterable[str]) -> Set[str]:
        """Logger names selected by the ``--debug-<name>`` flags among ``args``."""
        flags = self.get_debug_flags()
        return {self._modules[flags[arg]].logger_name for arg in args if arg in flags}


# Global registry instance
module_registry = ModuleRegistry()
