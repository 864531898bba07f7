"""
Configuration Loader - Analysis settings from YAML with environment overrides.

Settings live in configs/analysis.yaml. A missing file means defaults; an
unreadable or malformed file is a ConfigurationError.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path

from analyzers.exceptions import ConfigurationError
from config import (
    ANALYSIS_CONFIG_FILE, MODEL_PROVIDER, GPT_MODEL_STANDARD, MODEL_TEMPERATURE,
    MODEL_MAX_TOKENS, PRECHECK_MAX_TOKENS, PARSE_TELEMETRY_SAMPLE_RATE, API_BASE_URL
)
from shared_utils import logger


@dataclass
class AnalysisSettings:
    """Resolved settings for one analysis service."""
    model_provider: str = MODEL_PROVIDER
    openai_model: str = GPT_MODEL_STANDARD
    temperature: float = MODEL_TEMPERATURE
    max_tokens: int = MODEL_MAX_TOKENS
    precheck_max_tokens: int = PRECHECK_MAX_TOKENS
    telemetry_sample_rate: float = PARSE_TELEMETRY_SAMPLE_RATE
    api_base_url: str = API_BASE_URL
    repair_enabled: bool = True
    user_profile: Dict[str, Any] = field(default_factory=dict)


# Environment variable -> (settings field, converter)
ENV_OVERRIDES = {
    'MODEL_PROVIDER': ('model_provider', str),
    'OPENAI_MODEL': ('openai_model', str),
    'EVENT_ANALYZER_API_BASE_URL': ('api_base_url', str),
    'PARSE_TELEMETRY_SAMPLE_RATE': ('telemetry_sample_rate', float),
    'MODEL_MAX_TOKENS': ('max_tokens', int),
}


class ConfigLoader:
    """
    Loads analysis settings.

    Precedence: environment variable, then YAML file, then config.py defaults.
    """

    def __init__(self, config_dir: str = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to 'configs' in project root.
            environ: Environment mapping used for overrides (defaults to os.environ)
        """
        if config_dir is None:
            project_root = Path(__file__).parent.parent
            config_dir = project_root / 'configs'

        self.config_dir = Path(config_dir)
        self.environ = os.environ if environ is None else environ
        self._settings: Optional[AnalysisSettings] = None

    def load(self) -> AnalysisSettings:
        if self._settings is not None:
            return self._settings

        data = self._load_config_file(ANALYSIS_CONFIG_FILE)
        settings = self._build_settings(data)
        self._apply_env_overrides(settings)
        self._validate(settings)

        self._settings = settings
        return settings

    def _load_config_file(self, filename: str) -> Dict[str, Any]:
        """Load a single YAML configuration file; a missing file yields an empty mapping."""
        config_path = self.config_dir / filename

        if not config_path.exists():
            logger.log("info", f"No configuration file at {config_path}, using defaults")
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML parsing error in {filename}: {str(e)}")
        except OSError as e:
            raise ConfigurationError(f"Error reading {filename}: {str(e)}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Invalid configuration format in {filename}")

        logger.log("info", f"Loaded configuration from {filename}")
        return config

    def _build_settings(self, data: Dict[str, Any]) -> AnalysisSettings:
        model = data.get('model') or {}
        telemetry = data.get('telemetry') or {}
        backend = data.get('backend') or {}
        repair = data.get('repair') or {}
        user_profile = data.get('user_profile') or {}

        for section_name, section in [('model', model), ('telemetry', telemetry), ('backend', backend),
                                      ('repair', repair), ('user_profile', user_profile)]:
            if not isinstance(section, dict):
                raise ConfigurationError(f"Section '{section_name}' must be a mapping")

        defaults = AnalysisSettings()
        try:
            return AnalysisSettings(
                model_provider=str(model.get('provider', defaults.model_provider)),
                openai_model=str(model.get('openai_model', defaults.openai_model)),
                temperature=float(model.get('temperature', defaults.temperature)),
                max_tokens=int(model.get('max_tokens', defaults.max_tokens)),
                precheck_max_tokens=int(model.get('precheck_max_tokens', defaults.precheck_max_tokens)),
                telemetry_sample_rate=float(telemetry.get('sample_rate', defaults.telemetry_sample_rate)),
                api_base_url=str(backend.get('base_url', defaults.api_base_url)),
                repair_enabled=bool(repair.get('enabled', defaults.repair_enabled)),
                user_profile=dict(user_profile),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value in {ANALYSIS_CONFIG_FILE}: {str(e)}")

    def _apply_env_overrides(self, settings: AnalysisSettings):
        for env_name, (attribute, converter) in ENV_OVERRIDES.items():
            raw = self.environ.get(env_name)
            if raw is None or not str(raw).strip():
                continue
            try:
                setattr(settings, attribute, converter(raw.strip()))
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw}")

    def _validate(self, settings: AnalysisSettings):
        if not 0 <= settings.telemetry_sample_rate <= 1:
            raise ConfigurationError("telemetry sample_rate must be between 0 and 1")
        if settings.max_tokens <= 0 or settings.precheck_max_tokens <= 0:
            raise ConfigurationError("max_tokens values must be positive")
        if settings.model_provider.lower() not in ('backend', 'openai', 'stub'):
            raise ConfigurationError(f"Unknown model provider: {settings.model_provider}")


# Global configuration loader instance
_config_loader = None


def get_config_loader() -> ConfigLoader:
    """Get the global configuration loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_settings() -> AnalysisSettings:
    return get_config_loader().load()
