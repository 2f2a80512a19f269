#  -----------------------------------------------------------------------------
#  Copyright (c) 2024 Bud Ecosystem Inc.
#  #
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#  #
#      http://www.apache.org/licenses/LICENSE-2.0
#  #
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
#  -----------------------------------------------------------------------------

"""Manages application configuration, utilizing environment variables and an optional `.env` file."""

from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings

from ..__about__ import __version__
from .constants import Environment, LogLevel


load_dotenv()


def _split_allowlist(value: Optional[str]) -> List[str]:
    """Split a comma separated allow-list into its non-empty, stripped entries."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class AppConfig(BaseSettings):
    """Manages configuration settings for the projection engine.

    Attributes:
        env (Environment): The environment in which the application is running.
        debug (Optional[bool]): Enable console logging instead of JSON output. Defaults to the environment's choice.
        log_level (Optional[LogLevel]): Logging level. Defaults to the environment's level.
        node_labels_allowlist (str): Comma separated node label keys passed through by `kube_node_labels`,
            `*` for every label.
        node_annotations_allowlist (str): Comma separated node annotation keys passed through by
            `kube_node_annotations`, `*` for every annotation.

    Example:
        ```python
        from budkubestate.commons.config import app_settings

        registry = new_node_registry(allow_labels=app_settings.allowed_node_labels)
        ```
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # App Info
    name: str = __version__.split("@")[0]
    version: str = __version__.split("@")[-1]
    description: str = "Projects Kubernetes node objects into Prometheus metric families"

    # Deployment configs
    env: Environment = Field(Environment.DEVELOPMENT, alias="NAMESPACE")
    debug: Optional[bool] = Field(None, alias="DEBUG")
    log_level: Optional[LogLevel] = Field(None, alias="LOG_LEVEL")

    # Label passthrough
    node_labels_allowlist: str = Field("", alias="NODE_LABELS_ALLOWLIST")
    node_annotations_allowlist: str = Field("", alias="NODE_ANNOTATIONS_ALLOWLIST")

    @model_validator(mode="before")
    @classmethod
    def resolve_env(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert `env` or `NAMESPACE` values such as `development` or `bud-prod` into an `Environment`.

        Raises:
            ValueError: If the value names no known environment.
        """
        if isinstance(data.get("env"), str):
            data["env"] = Environment.from_string(data["env"])
        elif isinstance(data.get("NAMESPACE"), str):
            data["NAMESPACE"] = Environment.from_string(data["NAMESPACE"])
        return data

    @property
    def effective_log_level(self) -> LogLevel:
        """Return the configured log level, falling back to the environment default."""
        return self.log_level or self.env.log_level

    @property
    def effective_debug(self) -> bool:
        """Return whether development logging output is enabled."""
        if self.debug is None:
            return self.env != Environment.PRODUCTION
        return self.debug

    @property
    def allowed_node_labels(self) -> List[str]:
        """Return the node label allow-list as a list."""
        return _split_allowlist(self.node_labels_allowlist)

    @property
    def allowed_node_annotations(self) -> List[str]:
        """Return the node annotation allow-list as a list."""
        return _split_allowlist(self.node_annotations_allowlist)


app_settings = AppConfig()
