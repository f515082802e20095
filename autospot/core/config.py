"""Configuration management for AutoSpot."""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from autospot.core.exceptions import ConfigurationError


OPT_IN = "opt-in"
OPT_OUT = "opt-out"

TERMINATION_ACTIONS = ("auto", "detach", "terminate")

ENV_PREFIX = "AUTOSPOT_"


class Config(BaseModel):
    """Configuration model for AutoSpot."""

    model_config = ConfigDict(frozen=True)

    main_region: str = Field(default="us-east-1", description="Region used to enumerate all other regions")
    regions: List[str] = Field(default_factory=list, description="Enabled regions or glob patterns, empty means all")
    tag_filtering_mode: str = Field(default=OPT_IN, description="Either opt-in or opt-out")
    filter_by_tags: str = Field(default="", description="Comma separated key=value group tag filter")
    termination_notification_action: str = Field(default="auto", description="Action taken on spot interruption")
    min_on_demand_number: int = Field(default=0, ge=0, description="On-demand instances kept in each group")
    on_demand_prices: Dict[str, float] = Field(default_factory=dict, description="Hourly on-demand list prices by instance type")
    log_file: Optional[str] = Field(default=None, description="Log to this file instead of the console")
    debug: bool = Field(default=False, description="Enable debug logging")

    @field_validator('regions', mode='before')
    @classmethod
    def split_regions(cls, v):
        """Accept the region allow-list as a comma or space separated string."""
        if isinstance(v, str):
            return [r for r in v.replace(',', ' ').split() if r]
        return v

    @field_validator('filter_by_tags')
    @classmethod
    def validate_filter_by_tags(cls, v: str) -> str:
        try:
            parse_tag_expression(v)
        except ConfigurationError as e:
            raise ValueError(e.message)
        return v

    @field_validator('termination_notification_action')
    @classmethod
    def validate_termination_action(cls, v: str) -> str:
        if v not in TERMINATION_ACTIONS:
            raise ValueError(
                f"Invalid termination notification action: {v}. "
                f"Expected one of: {', '.join(TERMINATION_ACTIONS)}"
            )
        return v


def parse_tag_expression(expression: str) -> Tuple[Tuple[str, str], ...]:
    """Parse 'k1=v1,k2=v2' into key/value pairs.
    
    Raises:
        ConfigurationError: If an entry is not of the form key=value
    """
    pairs = []
    for item in expression.split(','):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition('=')
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid tag filter entry '{item}', expected key=value")
        pairs.append((key.strip(), value.strip()))
    return tuple(pairs)


def default_filtering_mode(mode: Optional[str]) -> str:
    """Anything other than the literal 'opt-out' is treated as 'opt-in'."""
    if mode != OPT_OUT:
        return OPT_IN
    return OPT_OUT


def default_filter_expression(mode: str, expression: Optional[str]) -> str:
    """Return the configured tag filter, or the default one for the mode."""
    if expression and expression.strip():
        return expression
    if mode == OPT_OUT:
        return "spot-enabled=false"
    return "spot-enabled=true"


class ConfigManager:
    """Loads the AutoSpot configuration file and environment overrides."""
    
    def __init__(self, config_file: Optional[Path] = None):
        """Initialize configuration manager.
        
        Args:
            config_file: Optional custom configuration file path.
                         Defaults to ~/.autospot/config.json
        """
        if config_file is None:
            config_file = Path.home() / ".autospot" / "config.json"
        
        self.config_file = Path(config_file)
    
    def load_config(self, environ: Optional[Dict[str, str]] = None) -> Config:
        """Load configuration from file and environment.
        
        A missing file is not an error, defaults plus environment
        overrides are used instead.
        
        Args:
            environ: Environment mapping, defaults to os.environ.
            
        Returns:
            Frozen Config object.
            
        Raises:
            ConfigurationError: If the file or an override is invalid.
        """
        config_data = {}
        
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    config_data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid configuration file {self.config_file}: {e}")
            except OSError as e:
                raise ConfigurationError(f"Failed to read configuration {self.config_file}: {e}")
            
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Invalid configuration file {self.config_file}: expected a JSON object")
        
        config_data.update(self._environment_overrides(environ if environ is not None else os.environ))
        
        try:
            return Config(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", details=str(e))
    
    def _environment_overrides(self, environ) -> Dict[str, object]:
        overrides = {}
        for field_name in Config.model_fields:
            value = environ.get(ENV_PREFIX + field_name.upper())
            if value is None:
                continue
            if field_name == 'on_demand_prices':
                try:
                    value = json.loads(value)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Invalid {ENV_PREFIX}ON_DEMAND_PRICES value: {e}")
            overrides[field_name] = value
        return overrides
