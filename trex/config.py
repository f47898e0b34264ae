"""
Client configuration.

Settings can be loaded from a YAML file, either at the top level or under a
`trex:` section:

    trex:
      host: localhost
      port: 50254
      engine: CPU
      rule_id: 2000
      print_traffic: false
      log_level: INFO
      log_file: trex-client.log
      connect_timeout: 5.0
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Optional, Self

import yaml

from .api.types import EngineType, Const
from .exceptions import TRexConfigurationError


@dataclass
class TRexConfig:
    host: Optional[str] = None
    port: int = Const.DEFAULT_PORT
    engine: EngineType = EngineType.CPU
    rule_id: int = Const.DEFAULT_RULE_ID
    print_traffic: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None
    connect_timeout: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.engine, str):
            try:
                self.engine = EngineType[self.engine.upper()]
            except KeyError:
                raise TRexConfigurationError(f"Unknown engine '{self.engine}', expected one of {[e.name for e in EngineType]}") from None
        if not isinstance(self.port, int) or isinstance(self.port, bool) or not 0 < self.port <= 65535:
            raise TRexConfigurationError(f"Port must be 1-65535, got {self.port!r}")
        if not isinstance(self.rule_id, int) or isinstance(self.rule_id, bool) or not 0 <= self.rule_id <= Const.MAX_INT:
            raise TRexConfigurationError(f"Rule id must be a non-negative 32-bit integer, got {self.rule_id!r}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise TRexConfigurationError(f"Unknown log level '{self.log_level}'")
        if self.connect_timeout is not None and not (isinstance(self.connect_timeout, (int, float)) and self.connect_timeout > 0):
            raise TRexConfigurationError(f"Connect timeout must be a positive number, got {self.connect_timeout!r}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TRexConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str) -> Self:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise TRexConfigurationError(f"Unable to read configuration file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise TRexConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise TRexConfigurationError(f"Configuration file {path} must contain a mapping")
        if "trex" in data:
            data = data["trex"] or {}
            if not isinstance(data, dict):
                raise TRexConfigurationError(f"'trex' section of {path} must be a mapping")
        return cls.from_dict(data)

    def merged(self, **overrides: Any) -> Self:
        """Return a copy with every override that is not None applied"""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
