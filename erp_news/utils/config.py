import yaml
import os
import re
from typing import Dict, Any, List

class ConfigurationError(Exception):
    """The configuration is missing, unreadable or lacks a required value."""

class Config:
    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = config_path
        self._load_env_file()  # Load .env file first
        self._config = self._load_config()

    def _load_env_file(self):
        """Load environment variables from .env file"""
        env_path = os.path.join(os.path.dirname(self.config_path), '.env')
        if os.path.exists(env_path):
            with open(env_path, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        # variables already set in the process win
                        os.environ.setdefault(key.strip(), value.strip().strip('"\''))

    def _load_config(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config_content = self._substitute_env_vars(file.read())
                loaded = yaml.safe_load(config_content)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {self.config_path}: {e}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML configuration: {e}")

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")
        return loaded

    def _substitute_env_vars(self, content: str) -> str:
        """Replace ${VAR_NAME} with environment variable values"""
        def replace_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))  # Return original if not found

        return re.sub(r'\$\{([^}]+)\}', replace_var, content)

    def get(self, key: str, default: Any = None) -> Any:
        keys = key.split('.')
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_sources(self) -> List[Dict[str, Any]]:
        return self.get('sources') or []

    def get_database_config(self) -> Dict[str, Any]:
        return self.get('database') or {}

    def get_database_path(self) -> str:
        path = self.get_database_config().get('path')
        if not isinstance(path, str) or not path.strip() or path.startswith('${'):
            raise ConfigurationError("database.path is not configured")
        return path.strip()

    def get_http_config(self) -> Dict[str, Any]:
        return self.get('http') or {}

    def get_crawler_config(self) -> Dict[str, Any]:
        return self.get('crawler') or {}

    def get_web_config(self) -> Dict[str, Any]:
        return self.get('web') or {}

    def get_scheduling_config(self) -> Dict[str, Any]:
        return self.get('scheduling') or {}

def get_config() -> Config:
    config_path = os.getenv('CONFIG_PATH', 'config.yaml')
    return Config(config_path)
