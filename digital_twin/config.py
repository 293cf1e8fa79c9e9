"""Runtime configuration for Digital Twin.

Values are read from Streamlit secrets first (``.streamlit/secrets.toml``) and
then from the environment, so the same keys work for ``streamlit run`` and for
plain scripts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import streamlit as st

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_REGION = "eu-west-1"
DEFAULT_NAMESPACE = "digital-twin"
DEFAULT_DATA_DIR = ".digital_twin"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one app session."""

    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_MODEL
    search_grounding: bool = True
    dynamo_table: str | None = None
    aws_region: str = DEFAULT_REGION
    user_id: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    log_level: str = "INFO"

    @property
    def remote_enabled(self) -> bool:
        return bool(self.dynamo_table)

    @property
    def local_store_path(self) -> Path:
        return self.data_dir / "local_storage.json"


def _secrets() -> Mapping[str, Any]:
    # st.secrets raises when no secrets.toml exists
    try:
        return dict(st.secrets)
    except Exception:
        return {}


def _lookup(key: str, secrets: Mapping[str, Any], env: Mapping[str, str]) -> str | None:
    value = secrets.get(key)
    if value in (None, ""):
        value = env.get(key)
    if value in (None, ""):
        return None
    return str(value).strip() or None


def load_settings(
    env: Mapping[str, str] | None = None,
    secrets: Mapping[str, Any] | None = None,
) -> Settings:
    """Build :class:`Settings` from Streamlit secrets and environment variables."""

    env = os.environ if env is None else env
    secrets = _secrets() if secrets is None else secrets

    def get(key: str) -> str | None:
        return _lookup(key, secrets, env)

    grounding = get("DIGITAL_TWIN_SEARCH_GROUNDING")
    return Settings(
        gemini_api_key=get("GEMINI_API_KEY"),
        gemini_model=get("GEMINI_MODEL") or DEFAULT_MODEL,
        search_grounding=True if grounding is None else grounding.lower() in _TRUTHY,
        dynamo_table=get("DIGITAL_TWIN_DYNAMO_TABLE"),
        aws_region=get("AWS_REGION") or DEFAULT_REGION,
        user_id=get("DIGITAL_TWIN_USER_ID"),
        namespace=get("DIGITAL_TWIN_NAMESPACE") or DEFAULT_NAMESPACE,
        data_dir=Path(get("DIGITAL_TWIN_DATA_DIR") or DEFAULT_DATA_DIR),
        log_level=get("DIGITAL_TWIN_LOG_LEVEL") or "INFO",
    )
