from __future__ import annotations

from enum import Enum
from typing import Mapping, NamedTuple

from pydantic import BaseModel, ConfigDict

from batchrepo.core.errors import ConfigurationError
from batchrepo.models.repositories.document import ProjectRepositories

PROJECT_KEY_PROP = "sonar.projectKey"
PROFILE_PROP = "sonar.profile"
ANALYSIS_MODE_PROP = "sonar.analysis.mode"


class AnalysisModeType(str, Enum):
    PUBLISH = "publish"
    ISSUES = "issues"
    # Legacy name of ``issues``; both compute issues without persisting them.
    PREVIEW = "preview"


class AnalysisMode:
    """Tells whether the current run is an issues-only analysis or a full scan."""

    def __init__(self, mode: AnalysisModeType = AnalysisModeType.PUBLISH) -> None:
        self.mode = mode

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> AnalysisMode:
        raw = (properties.get(ANALYSIS_MODE_PROP) or "").strip().lower()
        if not raw:
            return cls()
        try:
            return cls(AnalysisModeType(raw))
        except ValueError:
            allowed = ", ".join(m.value for m in AnalysisModeType)
            raise ConfigurationError(
                f"Invalid value '{raw}' for {ANALYSIS_MODE_PROP}, expected one of: {allowed}"
            ) from None

    def is_issues(self) -> bool:
        return self.mode in (AnalysisModeType.ISSUES, AnalysisModeType.PREVIEW)

    def __repr__(self) -> str:
        return f"AnalysisMode({self.mode.value!r})"


class LoadContext(BaseModel):
    """Inputs of a single ``load`` call."""

    model_config = ConfigDict(frozen=True)

    project_key: str
    profile_override: str | None = None
    preview: bool = False

    @classmethod
    def from_properties(
        cls,
        properties: Mapping[str, str],
        analysis_mode: AnalysisMode | None = None,
        *,
        project_key: str | None = None,
    ) -> LoadContext:
        """Build a context from run properties.

        *project_key* takes precedence over the ``sonar.projectKey`` property.
        When *analysis_mode* is omitted it is read from ``sonar.analysis.mode``.

        Raises:
            ConfigurationError: no project key is available, or the analysis
                mode property holds an unknown value.
        """
        key = project_key or properties.get(PROJECT_KEY_PROP)
        if not key or not key.strip():
            raise ConfigurationError(
                f"Missing project key, set the '{PROJECT_KEY_PROP}' property"
            )
        mode = analysis_mode or AnalysisMode.from_properties(properties)
        return cls(
            project_key=key,
            profile_override=properties.get(PROFILE_PROP) or None,
            preview=mode.is_issues(),
        )


class LoadResult(NamedTuple):
    repositories: ProjectRepositories
    from_cache: bool
