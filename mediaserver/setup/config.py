from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from mediaserver.setup import CONFIG_PATH, DATA_PATH


logger = logging.getLogger(__name__)


# =============================================================================
# SetupConfig (args/setup.yaml)
# =============================================================================

class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    base_url: str = Field(default="http://localhost:3000")
    trpc_path: str = Field(default="/trpc")
    timeout_seconds: float = Field(default=10.0, gt=0)


class WizardConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    state_dir: Optional[str] = None
    just_created_seconds: float = Field(default=3.0, ge=0)
    use_local_paths: bool = Field(default=False)

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir).expanduser() if self.state_dir else DATA_PATH


class SetupConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    api: ApiConfig = Field(default_factory=ApiConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)


def load_config(path: Path | None = None) -> SetupConfig:
    """Load args/setup.yaml, falling back to defaults if missing or invalid.

    MEDIASERVER_API_URL and MEDIASERVER_DATA_DIR override the file.
    """
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}
        config = SetupConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        config = SetupConfig()

    api_url = os.environ.get("MEDIASERVER_API_URL")
    if api_url:
        config.api.base_url = api_url
    data_dir = os.environ.get("MEDIASERVER_DATA_DIR")
    if data_dir:
        config.wizard.state_dir = data_dir

    return config
