"""drift.config.yaml models and loading."""

from drift_toolkit.config.loader import (
    find_config_path,
    get_code_config,
    load_config,
    load_config_from_string,
)
from drift_toolkit.config.models import (
    CodeDomainConfig,
    DependencyCategory,
    DiscoveryPattern,
    DriftConfig,
    IntegrityCheck,
    IntegrityConfig,
    MetadataSchema,
    ScanDefinition,
    Severity,
)

__all__ = [
    "CodeDomainConfig",
    "DependencyCategory",
    "DiscoveryPattern",
    "DriftConfig",
    "IntegrityCheck",
    "IntegrityConfig",
    "MetadataSchema",
    "ScanDefinition",
    "Severity",
    "find_config_path",
    "get_code_config",
    "load_config",
    "load_config_from_string",
]
