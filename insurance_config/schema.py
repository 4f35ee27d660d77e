"""
Configuration schema for the insurance back office.

Two frozen artifacts come out of the YAML file:

  Settings         = runtime settings (database, logging, error exposure)
  CapabilityTable  = role -> operations the role may invoke

Both are immutable once built; get_active_settings() is the only producer.
"""

from __future__ import annotations

from dataclasses import dataclass, field

WILDCARD = "*"


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class CapabilityTable:
    """
    Declarative role -> capability mapping.

    A role granted ``*`` may invoke every operation.  Unknown roles get
    nothing.
    """

    operations: frozenset[str]
    roles: dict[str, frozenset[str]] = field(default_factory=dict)

    def operations_for(self, role: str | None) -> frozenset[str]:
        if role is None:
            return frozenset()
        granted = self.roles.get(role, frozenset())
        if WILDCARD in granted:
            return self.operations
        return granted

    def allows(self, role: str | None, operation: str) -> bool:
        return operation in self.operations_for(role)


@dataclass(frozen=True)
class Settings:
    database: DatabaseSettings
    logging: LoggingSettings
    capabilities: CapabilityTable
    expose_error_details: bool = False
    checksum: str = ""
