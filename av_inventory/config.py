import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from .models import InventoryConfig


class ConfigManager:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config: Optional[InventoryConfig] = None
        self.load_config()

    def load_config(self) -> InventoryConfig:
        """Load configuration from file, or defaults when no file is given"""
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

        # Merge with environment variables
        config_data = self._merge_env_vars(config_data)

        inventory_config = config_data.get('inventory', {}) or {}
        self.config = InventoryConfig(**inventory_config)

        # Store additional sections
        for key, value in config_data.items():
            if key != 'inventory':
                setattr(self.config, key, value)

        return self.config

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge environment variables with configuration"""
        env_prefix = "AVI_"

        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                config_key = key[len(env_prefix):].lower()

                # Handle nested keys (e.g., AVI_INVENTORY_LOG_LEVEL)
                if '_' in config_key:
                    section, nested_key = config_key.split('_', 1)

                    if not isinstance(config_data.get(section), dict):
                        config_data[section] = {}

                    config_data[section][nested_key] = value
                else:
                    config_data[config_key] = value

        return config_data

    def get_config(self) -> InventoryConfig:
        """Get current configuration"""
        if self.config is None:
            self.load_config()
        return self.config

    def dump(self) -> str:
        """Render the effective configuration as YAML"""
        config = self.get_config()
        data: Dict[str, Any] = {'inventory': config.model_dump(exclude=set(config.model_extra or {}))}
        data.update(config.model_extra or {})
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
