"""Configuration loader"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"


class AppSettings(BaseModel):
    """Application settings"""
    name: str = "around"
    version: str = "1.0.0"
    environment: str = "development"


class AuthSettings(BaseModel):
    """Token signing and password hashing settings"""
    signing_key: str
    algorithm: str = "HS256"
    token_ttl_hours: int = 24
    bcrypt_rounds: int = 12


class LoggingSettings(BaseModel):
    """Logging settings"""
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class CredentialStoreSettings(BaseModel):
    backend: str = "memory"
    url: str = "http://localhost:9200"
    index: str = "around-users"


class BlobStoreSettings(BaseModel):
    backend: str = "memory"
    bucket: str = "post-images"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    cloud_name: Optional[str] = None
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    folder: str = "around"


class DocumentIndexSettings(BaseModel):
    backend: str = "memory"
    url: str = "http://localhost:9200"
    index: str = "around"


class WideColumnSettings(BaseModel):
    backend: str = "memory"
    hosts: List[str] = Field(default_factory=lambda: ["localhost"])
    port: int = 9042
    keyspace: str = "around"
    table: str = "post"


class StoreSettings(BaseModel):
    """Backing store selection and connection details"""
    timeout_seconds: float = 5.0
    bootstrap_attempts: int = 5
    credentials: CredentialStoreSettings = Field(default_factory=CredentialStoreSettings)
    blob: BlobStoreSettings = Field(default_factory=BlobStoreSettings)
    index: DocumentIndexSettings = Field(default_factory=DocumentIndexSettings)
    columns: WideColumnSettings = Field(default_factory=WideColumnSettings)


class GeoSettings(BaseModel):
    default_radius_km: float = 200.0
    max_results: int = 100


class AnnotationSettings(BaseModel):
    """Optional image scoring against an ML prediction endpoint"""
    enabled: bool = False
    endpoint: Optional[str] = None
    access_token: Optional[str] = None
    timeout_seconds: float = 10.0


class Config(BaseModel):
    """Main configuration model"""
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    stores: StoreSettings = Field(default_factory=StoreSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)
    annotation: AnnotationSettings = Field(default_factory=AnnotationSettings)


class ConfigLoader:
    """Load and parse the settings file"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(
            config_path or os.getenv("AROUND_CONFIG") or DEFAULT_CONFIG_PATH
        )
        load_dotenv()  # Load environment variables

    def _substitute_env_vars(self, value: Any, context: str = "") -> Any:
        """Recursively substitute environment variables in config values"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                # Extract variable name and default value
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                env_value = os.getenv(var_expr)
                if env_value is None:
                    error_msg = f"Environment variable {var_expr} not found"
                    if context:
                        error_msg += f" (context: {context})"
                    raise ConfigError(error_msg)
                return env_value
        elif isinstance(value, dict):
            return {
                k: self._substitute_env_vars(
                    v,
                    context=f"{context}.{k}" if context else k
                )
                for k, v in value.items()
            }
        elif isinstance(value, list):
            return [
                self._substitute_env_vars(
                    item,
                    context=f"{context}[{i}]" if context else f"[{i}]"
                )
                for i, item in enumerate(value)
            ]
        return value

    def load_settings(self) -> Config:
        """Load application settings"""
        if not self.config_path.exists():
            raise ConfigError(f"Settings file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

        return self.parse(raw_config)

    def parse(self, raw_config: Dict[str, Any]) -> Config:
        """Substitute environment variables and validate a raw settings mapping"""
        config = self._substitute_env_vars(raw_config)
        try:
            return Config(**config)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid settings in {self.config_path}: {e}") from e
