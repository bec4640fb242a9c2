"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class FlexregConfig(BaseSettings):
    """Flexible record registry configuration"""
    
    # Data store configuration
    store_backend: str = "json"  # memory, json or sqlite
    data_path: str = "flexreg_data.json"
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8095
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Record views
    recent_records_limit: int = 10
    
    # Defaults written into a fresh dataset's config object
    title: str = "Data Register"
    description: str = "Record your data in a flexible, custom way"
    entity_name: str = "Entity"
    navbar_title: str = "Flexible Register"
    
    class Config:
        env_prefix = "FLEXREG_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = FlexregConfig()


def get_config() -> FlexregConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> FlexregConfig:
    """Reload configuration from environment"""
    global config
    config = FlexregConfig()
    return config
