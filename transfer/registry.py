"""Registry of source and destination adapters, keyed by backend identifier."""

import logging
from typing import Any, Dict, List, Type

from .destinations.appwrite import AppwriteDestination
from .destinations.base import Destination
from .destinations.local import LocalDestination
from .exceptions import ConfigurationError
from .models.transfer import AdapterConfig, TransferConfig
from .orchestrator import TransferOrchestrator
from .sources.base import Source
from .sources.nhost import NHostSource

logger = logging.getLogger(__name__)

_sources: Dict[str, Type[Source]] = {}
_destinations: Dict[str, Type[Destination]] = {}


def register_source(identifier: str, source_class: Type[Source]) -> None:
    """Register a source class. The class must provide ``from_config(options)``."""
    _sources[identifier.lower()] = source_class
    logger.debug(f"Registered source: {identifier}")


def register_destination(identifier: str, destination_class: Type[Destination]) -> None:
    """Register a destination class. The class must provide ``from_config(options)``."""
    _destinations[identifier.lower()] = destination_class
    logger.debug(f"Registered destination: {identifier}")


def available_sources() -> List[str]:
    return sorted(_sources)


def available_destinations() -> List[str]:
    return sorted(_destinations)


def _build(registry: Dict[str, Type[Any]], role: str, config: AdapterConfig) -> Any:
    adapter_class = registry.get(config.type.lower())
    if adapter_class is None:
        raise ConfigurationError(
            f"Unsupported {role}: {config.type}. Available {role}s: {', '.join(sorted(registry))}",
            details={"type": config.type},
        )

    try:
        return adapter_class.from_config(config.options)
    except KeyError as e:
        raise ConfigurationError(
            f"Missing option {e.args[0]} for {role} {config.type}",
            details={"type": config.type, "option": e.args[0]},
        ) from e


def create_source(config: AdapterConfig) -> Source:
    """Create a source from its adapter configuration."""
    return _build(_sources, "source", config)


def create_destination(config: AdapterConfig) -> Destination:
    """Create a destination from its adapter configuration."""
    return _build(_destinations, "destination", config)


def create_orchestrator(config: TransferConfig) -> TransferOrchestrator:
    """Create an orchestrator wired with the configured adapters."""
    return TransferOrchestrator(
        create_source(config.source),
        create_destination(config.destination),
        batch_size=config.batch_size,
        file_batch_size=config.file_batch_size,
    )


register_source("nhost", NHostSource)
register_destination("appwrite", AppwriteDestination)
register_destination("local", LocalDestination)
