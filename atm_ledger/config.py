"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class AtmConfig(BaseSettings):
    """ATM ledger configuration"""
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Feature flags
    enable_audit_logging: bool = True
    
    # Shell configuration
    prompt: str = "$ "
    
    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8090
    
    class Config:
        env_prefix = "ATM_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = AtmConfig()


def get_config() -> AtmConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AtmConfig:
    """Reload configuration from environment"""
    global config
    config = AtmConfig()
    return config
