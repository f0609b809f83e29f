"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Sequence

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import DEFAULT_TIMEZONE, WEEKDAY_NAMES
from .services.free_slot_finder import FETCH_FAILURE_POLICIES


class ApiConfig(BaseModel):
    """Connection settings for the calendar backend."""
    base_url: str = "http://localhost:8080/api"
    access_token: str = ""
    timeout_seconds: float = 60
    excluded_statuses: List[str] = Field(default_factory=lambda: ["CANCELED"])

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class DefaultsConfig(BaseModel):
    """Default settings for search."""
    duration_minutes: int = 60
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(22, 0)
    days_of_week: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5, 6, 7])
    search_days: int = 14

    @field_validator("duration_minutes", "search_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure duration and search span are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        if not value:
            raise ValueError("days_of_week must not be empty")
        invalid_days = [day for day in value if day not in WEEKDAY_NAMES]
        if invalid_days:
            raise ValueError(f"days_of_week must be between 1 and 7, got {invalid_days}")
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if self.working_hours_end <= self.working_hours_start:
            raise ValueError("working_hours_end must be later than working_hours_start")
        return self


class Member(BaseModel):
    """Known member alias."""
    name: str  # Used as alias
    user_id: str

    def display_name(self) -> str:
        """Get display name."""
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    timezone: str = DEFAULT_TIMEZONE
    fetch_failure_policy: str = "abort"
    members: List[Member] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    @field_validator("fetch_failure_policy")
    @classmethod
    def validate_policy(cls, value: str) -> str:
        if value not in FETCH_FAILURE_POLICIES:
            raise ValueError(f"fetch_failure_policy must be one of {FETCH_FAILURE_POLICIES}")
        return value

    @field_validator("members")
    @classmethod
    def validate_members(cls, value: List[Member]) -> List[Member]:
        """Ensure member aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for member in value:
            name_key = member.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate member name detected: {member.name}")
            if member.user_id in seen_ids:
                raise ValueError(f"Duplicate member id detected: {member.user_id}")
            seen_names.add(name_key)
            seen_ids.add(member.user_id)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_member_by_name(self, name: str) -> Member | None:
        """Find a member by their name (alias)."""
        for member in self.members:
            if member.name.lower() == name.lower():
                return member
        return None

    def resolve_member(self, identifier: str) -> str:
        """
        Resolve a configured alias to a user id; anything else passes through.
        """
        member = self.find_member_by_name(identifier)
        if member:
            return member.user_id
        return identifier

    def resolve_members(self, identifiers: Sequence[str]) -> List[str]:
        """Resolve multiple identifiers, dropping duplicates."""
        resolved: List[str] = []
        for identifier in identifiers:
            user_id = self.resolve_member(identifier)
            if user_id not in resolved:
                resolved.append(user_id)
        return resolved


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the configuration, falling back to built-in defaults when no
    config file exists and none was explicitly requested.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
