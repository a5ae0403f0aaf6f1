"""
Configuration validation utilities.
"""

import os
from typing import Dict, Any, List

from pydantic import ValidationError

from ...infrastructure.exceptions import ConfigurationError
from .models import LoggingConfiguration, ProvisionConfiguration, RootConfiguration
from .sources import ENVIRONMENT_SECTIONS


class ConfigurationValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]]):
        super().__init__(
            message,
            validation_errors=validation_errors,
            error_code="CONFIGURATION_VALIDATION_ERROR",
        )
        self.validation_errors = validation_errors

    def get_detailed_message(self) -> str:
        """Get a detailed error message with all validation errors."""
        lines = [self.message]
        lines.append("Validation errors:")

        for error in self.validation_errors:
            location = " -> ".join(str(loc) for loc in error.get('loc', []))
            msg = error.get('msg', 'Unknown error')
            lines.append(f"- {location}: {msg}")

        return "\n".join(lines)


class ConfigurationValidator:
    """Validates configuration data and provides detailed error messages."""

    @staticmethod
    def validate_configuration(config_data: Dict[str, Any]) -> List[str]:
        """
        Validate configuration data and return list of warnings.

        Args:
            config_data: Raw, merged configuration data

        Returns:
            List of warning messages for keys that are ignored

        Raises:
            ConfigurationValidationError: If validation fails with errors
        """
        errors: List[Dict[str, Any]] = []
        warnings: List[str] = []

        sections = {
            'logging': LoggingConfiguration,
            'provision': ProvisionConfiguration,
        }
        for section, model in sections.items():
            if section not in config_data:
                continue
            section_data = config_data[section]
            if not isinstance(section_data, dict):
                errors.append({
                    'loc': [section],
                    'msg': "Section must be a mapping",
                    'type': 'dict_type',
                })
                continue
            try:
                model(**section_data)
            except ValidationError as e:
                for error in e.errors():
                    errors.append({
                        'loc': [section] + list(error['loc']),
                        'msg': error['msg'],
                        'type': error['type'],
                    })

        for key in config_data.keys():
            if key not in RootConfiguration.model_fields:
                warnings.append(f"Unknown configuration key: {key}")

        if errors:
            raise ConfigurationValidationError(
                "Configuration validation failed",
                errors
            )

        return warnings

    @staticmethod
    def validate_environment_variables(prefix: str = "RAMA_") -> List[str]:
        """
        Return warnings for prefixed environment variables that address no known setting.
        """
        warnings = []
        models = {
            'logging': LoggingConfiguration,
            'provision': ProvisionConfiguration,
        }

        prefix_upper = prefix.upper()
        for key in os.environ:
            if not key.startswith(prefix_upper):
                continue
            section, _, field_name = key[len(prefix_upper):].lower().partition('_')
            if section not in ENVIRONMENT_SECTIONS or field_name not in models[section].model_fields:
                warnings.append(f"Unknown environment variable: {key}")

        return warnings
