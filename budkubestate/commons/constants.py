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

"""Defines constant values used throughout the project, including metric and Kubernetes specific constants."""

from enum import Enum, StrEnum


class LogLevel(Enum):
    """Define logging levels accepted by the application configuration.

    Attributes:
        DEBUG (LogLevel): Debug-level logging.
        INFO (LogLevel): Info-level logging.
        WARNING (LogLevel): Warning-level logging.
        ERROR (LogLevel): Error-level logging.
        CRITICAL (LogLevel): Critical-level logging.
        NOTSET (LogLevel): No logging level.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    NOTSET = "NOTSET"


class Environment(str, Enum):
    """Enumerate application environments and provide environment-specific logging defaults.

    Attributes:
        PRODUCTION (Environment): Represents the production environment.
        DEVELOPMENT (Environment): Represents the development environment.
        TESTING (Environment): Represents the testing environment.
    """

    PRODUCTION = "PRODUCTION"
    DEVELOPMENT = "DEVELOPMENT"
    TESTING = "TESTING"

    @staticmethod
    def from_string(value: str) -> "Environment":
        """Convert a string representation to an `Environment` instance.

        Args:
            value (str): The string representation of the environment.

        Returns:
            Environment: The corresponding `Environment` instance.

        Raises:
            ValueError: If the string does not match any valid environment.
        """
        import re

        matches = re.findall(r"(?i)\b(dev|prod|test)(elop|elopment|uction|ing|er)?\b", value)

        env = matches[0][0].lower() if len(matches) else ""
        if env == "dev":
            return Environment.DEVELOPMENT
        elif env == "prod":
            return Environment.PRODUCTION
        elif env == "test":
            return Environment.TESTING
        else:
            raise ValueError(
                f"Invalid environment: {value}. Only the following environments are allowed: "
                f"{', '.join(map(str, Environment.__members__))}"
            )

    @property
    def log_level(self) -> LogLevel:
        """Return the default logging level for the environment."""
        return {"PRODUCTION": LogLevel.INFO}.get(self.value, LogLevel.DEBUG)


class MetricType(StrEnum):
    """Prometheus metric types a family may declare."""

    GAUGE = "gauge"
    COUNTER = "counter"


class StabilityLevel(StrEnum):
    """Stability of a metric family, rendered as a prefix of stable help texts."""

    ALPHA = "ALPHA"
    STABLE = "STABLE"


class ResourceUnit(StrEnum):
    """Unit label values of the node resource families.

    Attributes:
        CORE: Fractional CPU cores.
        BYTE: Memory and storage sizes in bytes.
        INTEGER: Plain counts such as pods or extended device resources.
    """

    CORE = "core"
    BYTE = "byte"
    INTEGER = "integer"


# Closed enumeration of condition states, in emission order
CONDITION_STATUSES = ("true", "false", "unknown")

# Node role label sources, highest precedence first
NODE_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
NODE_ROLE_LABEL = "kubernetes.io/role"
NODE_ROLE_FALLBACK_LABEL = "role"

# Constant rendered for the kubeproxy_version info label
DEPRECATED_KUBEPROXY_VERSION = "deprecated"

INTERNAL_IP_ADDRESS_TYPE = "InternalIP"

# Native resource names and name prefixes
RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
RESOURCE_STORAGE = "storage"
RESOURCE_EPHEMERAL_STORAGE = "ephemeral-storage"
RESOURCE_PODS = "pods"
RESOURCE_HUGEPAGES_PREFIX = "hugepages-"
RESOURCE_ATTACHABLE_VOLUMES_PREFIX = "attachable-volumes-"
RESOURCE_DEFAULT_NAMESPACE_PREFIX = "kubernetes.io/"
RESOURCE_REQUESTS_PREFIX = "requests."

ALLOW_ALL = "*"
