"""Project repositories payload returned by ``/batch/project``.

The wire format is camelCase JSON; field names are snake_case and mapped
through ``to_camel``.  Instances are frozen once parsed: sequences are
tuples and mappings are read-only ``MappingProxyType`` views, serialized
back as plain dicts.
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class QualityProfile(BaseModel):
    """A language-scoped bundle of rule activations."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    key: str
    name: str
    language: str
    last_used: datetime | None = None


class ActiveRule(BaseModel):
    """Configuration of a rule enabled for the run, keyed by rule key in the payload."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    severity: str | None = None
    params: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    name: str | None = None
    language: str | None = None
    internal_key: str | None = None

    @field_validator("params")
    @classmethod
    def _freeze_params(cls, params: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(params))

    @field_serializer("params")
    def _thaw_params(self, params: Mapping[str, str]) -> dict[str, str]:
        return dict(params)


class ProjectRepositories(BaseModel):
    """Everything the server knows about a project before analysis starts."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    timestamp: datetime | None = None
    last_analysis_date: datetime | None = None
    quality_profiles: tuple[QualityProfile, ...] = ()
    active_rules: Mapping[str, ActiveRule] = Field(default_factory=dict, validate_default=True)
    file_data: Mapping[str, Mapping[str, Any]] = Field(
        default_factory=dict, alias="fileDataByPath", validate_default=True
    )
    settings_by_module: Mapping[str, Mapping[str, str]] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("quality_profiles")
    @classmethod
    def _unique_profile_keys(
        cls, profiles: tuple[QualityProfile, ...]
    ) -> tuple[QualityProfile, ...]:
        seen: set[str] = set()
        for profile in profiles:
            if profile.key in seen:
                raise ValueError(f"Duplicate quality profile key '{profile.key}'")
            seen.add(profile.key)
        return profiles

    @field_validator("active_rules")
    @classmethod
    def _freeze_rules(cls, rules: Mapping[str, ActiveRule]) -> Mapping[str, ActiveRule]:
        return MappingProxyType(dict(rules))

    @field_validator("file_data", "settings_by_module")
    @classmethod
    def _freeze_nested(cls, value: Mapping[str, Mapping[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
        return MappingProxyType({key: MappingProxyType(dict(inner)) for key, inner in value.items()})

    @field_serializer("active_rules")
    def _thaw_rules(self, rules: Mapping[str, ActiveRule]) -> dict[str, ActiveRule]:
        return dict(rules)

    @field_serializer("file_data")
    def _thaw_file_data(self, value: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
        return {key: dict(inner) for key, inner in value.items()}

    @field_serializer("settings_by_module")
    def _thaw_settings(self, value: Mapping[str, Mapping[str, str]]) -> dict[str, dict[str, str]]:
        return {key: dict(inner) for key, inner in value.items()}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def qprofile(self, key: str) -> QualityProfile | None:
        for profile in self.quality_profiles:
            if profile.key == key:
                return profile
        return None

    def qprofiles_by_language(self) -> dict[str, list[QualityProfile]]:
        """Group profiles by language, preserving payload order within each group."""
        grouped: dict[str, list[QualityProfile]] = {}
        for profile in self.quality_profiles:
            grouped.setdefault(profile.language, []).append(profile)
        return grouped

    def active_rule(self, rule_key: str) -> ActiveRule | None:
        return self.active_rules.get(rule_key)

    def file_data_by_path(self, path: str) -> dict[str, Any]:
        """Return the settings stored for *path*, or an empty dict."""
        return dict(self.file_data.get(path, {}))

    def settings(self, module_key: str) -> dict[str, str]:
        return dict(self.settings_by_module.get(module_key, {}))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_json(cls, text: str | bytes) -> ProjectRepositories:
        """Parse a server response.

        Raises:
            pydantic.ValidationError: when *text* is not valid JSON or does
                not match the payload schema.
        """
        return cls.model_validate_json(text)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
