"""Query string construction for ``/batch/project``.

Parameter order is fixed (key, profile, preview) so that the same inputs
always produce the same path, which is also the response cache key.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from batchrepo.core.errors import ConfigurationError

PROJECT_REPOSITORIES_PATH = "/batch/project"


def build_query(project_key: str, profile_override: str | None = None, preview: bool = False) -> str:
    """Return ``key=...[&profile=...]&preview=true|false``, form-encoded.

    >>> build_query("foo bàr")
    'key=foo+b%C3%A0r&preview=false'
    >>> build_query("foo", "my-profile#2", preview=True)
    'key=foo&profile=my-profile%232&preview=true'

    Raises:
        ConfigurationError: *project_key* is missing or blank.
    """
    if not project_key or not project_key.strip():
        raise ConfigurationError("Project key must not be empty")

    query = "key=" + quote_plus(project_key)
    if profile_override:
        query += "&profile=" + quote_plus(profile_override)
    query += "&preview=" + ("true" if preview else "false")
    return query


def build_path(project_key: str, profile_override: str | None = None, preview: bool = False) -> str:
    return f"{PROJECT_REPOSITORIES_PATH}?{build_query(project_key, profile_override, preview)}"
