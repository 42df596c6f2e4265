from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
from typing import Dict, Optional, Tuple
import os


def parse_capacity_overrides(value: str) -> Dict[int, int]:
    """
    Parse "3:24,5:40" into {3: 24, 5: 40}.

    Keys are layer indices, values the fixed capacity for that layer.
    """
    overrides = {}
    for part in (value or "").split(','):
        part = part.strip()
        if not part:
            continue
        layer, _, capacity = part.partition(':')
        if not capacity.strip():
            raise ValueError(f"Invalid capacity override '{part}', expected LAYER:CAPACITY")
        layer_index, layer_capacity = int(layer), int(capacity)
        if layer_index < 0 or layer_capacity < 0:
            raise ValueError(f"Invalid capacity override '{part}', values must be >= 0")
        overrides[layer_index] = layer_capacity
    return overrides


def parse_angles(value: str) -> Tuple[float, ...]:
    """Parse "0,90,180,270" into a tuple of degrees"""
    return tuple(float(a) for a in (value or "").split(',') if a.strip())


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file (for secrets like the storage service key)
    - System environment

    Variable names match docker-compose conventions:
    - POSTGRES_HOST, POSTGRES_PORT, etc. (for the words table)
    - STORAGE_URL, STORAGE_SERVICE_KEY, STORAGE_BUCKET (for avatars)
    - LAYOUT_* (for ring capacities and placement)
    """

    # PostgreSQL (from docker-compose)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "orbit_user"
    postgres_password: str = "orbit_pass"
    postgres_db: str = "orbit"
    database_url: Optional[str] = None  # takes precedence over POSTGRES_* when set
    db_command_timeout: float = 10.0

    # Avatar storage (Supabase-compatible storage API)
    storage_url: str = "http://localhost:54321/storage/v1"
    storage_service_key: str = ""
    storage_bucket: str = "avatars"
    storage_timeout: float = 10.0

    # Input limits
    max_term_length: int = 30
    max_username_length: int = 30
    max_avatar_bytes: int = 5 * 1024 * 1024

    # Policy
    one_word_per_visitor: bool = True
    reconcile_write_back: bool = True
    claim_retries: int = 3

    # Ring layout
    layout_base_capacity: int = 4
    layout_capacity_overrides: str = ""  # "3:24" forces layer 3 to 24 slots
    layout_max_layer: Optional[int] = None
    layout_base_radius: float = 90.0
    layout_radius_step: float = 70.0
    layout_stagger_layers: bool = True
    layout_layer0_angles: str = "0,90,180,270"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('storage_service_key', mode='before')
    @classmethod
    def get_storage_key(cls, v):
        """Use SUPABASE_SERVICE_ROLE_KEY from env if STORAGE_SERVICE_KEY not set"""
        if v:
            return v
        return os.getenv('SUPABASE_SERVICE_ROLE_KEY', '')

    @field_validator('layout_capacity_overrides')
    @classmethod
    def check_capacity_overrides(cls, v):
        parse_capacity_overrides(v)
        return v

    @field_validator('layout_layer0_angles')
    @classmethod
    def check_layer0_angles(cls, v):
        parse_angles(v)
        return v

    @field_validator('layout_max_layer', mode='before')
    @classmethod
    def parse_max_layer(cls, v):
        """Empty string means no maximum (unbounded growth)"""
        if v is None or v == "":
            return None
        return v

    @field_validator('layout_base_capacity')
    @classmethod
    def check_base_capacity(cls, v):
        if v < 1:
            raise ValueError("layout_base_capacity must be at least 1")
        return v

    def layer_capacity(self):
        """Build the capacity table for ring layers"""
        from services.layout import LayerCapacity
        return LayerCapacity(
            base=self.layout_base_capacity,
            overrides=parse_capacity_overrides(self.layout_capacity_overrides),
            max_layer=self.layout_max_layer,
        )

    def placement(self):
        """Build the presentation geometry for ring layers"""
        from services.layout import Placement
        return Placement(
            base_radius=self.layout_base_radius,
            radius_step=self.layout_radius_step,
            stagger_layers=self.layout_stagger_layers,
            layer0_angles=parse_angles(self.layout_layer0_angles),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
