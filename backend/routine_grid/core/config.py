from functools import lru_cache
import json
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so the engine picks up the same file from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="ROUTINE_GRID_",
        extra="ignore",
    )

    project_name: str = "Routine Grid"

    section_lab_groups: Annotated[dict[str, list[str]], NoDecode] = {
        "AB": ["A", "B"],
        "CD": ["C", "D"],
    }
    default_lab_groups: list[str] = ["A", "B"]

    routine_day_indexes: Annotated[list[int], NoDecode] = [0, 1, 2, 3, 4, 5]
    day_names: list[str] = [
        "Sunday",
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
    ]

    @field_validator("section_lab_groups", mode="before")
    @classmethod
    def split_section_lab_groups(cls, value: str | dict) -> dict:
        # Accepts JSON or the short "AB:A/B,CD:C/D" form from the environment.
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("{"):
                return json.loads(stripped)
            mapping: dict[str, list[str]] = {}
            for entry in stripped.split(","):
                if not entry.strip():
                    continue
                section, _, groups = entry.partition(":")
                mapping[section.strip().upper()] = [
                    group.strip().upper() for group in groups.split("/") if group.strip()
                ]
            return mapping
        return value

    @field_validator("section_lab_groups")
    @classmethod
    def validate_section_lab_groups(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        normalized: dict[str, list[str]] = {}
        for section, groups in value.items():
            if len(groups) != 2:
                raise ValueError(f"Section {section} must map to exactly two lab groups")
            normalized[section.strip().upper()] = [group.strip().upper() for group in groups]
        return normalized

    @field_validator("default_lab_groups")
    @classmethod
    def validate_default_lab_groups(cls, value: list[str]) -> list[str]:
        if len(value) != 2:
            raise ValueError("Default lab groups must contain exactly two groups")
        return [group.strip().upper() for group in value]

    @field_validator("routine_day_indexes", mode="before")
    @classmethod
    def split_day_indexes(cls, value: str | list[int]) -> list[int]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [int(item) for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("routine_day_indexes")
    @classmethod
    def validate_day_indexes(cls, value: list[int]) -> list[int]:
        invalid = [day for day in value if day < 0 or day > 6]
        if invalid:
            raise ValueError(f"Invalid day index(es): {', '.join(str(day) for day in invalid)}")
        return sorted(set(value))

    def lab_groups_for_section(self, section: str | None) -> tuple[str, str]:
        groups = self.section_lab_groups.get((section or "").strip().upper(), self.default_lab_groups)
        return groups[0], groups[1]


@lru_cache
def get_settings() -> Settings:
    return Settings()
