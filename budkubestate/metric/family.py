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

"""Metric family definitions.

A family is identified by its header (name, help text, type, stability and label schema), which is fixed when the
family is registered. Each projection produces a fresh `Family` pairing the header with that call's samples.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..commons.constants import MetricType, StabilityLevel
from .codec import escape_help


@dataclass(frozen=True)
class FamilyHeader:
    """Static metadata of a metric family.

    Attributes:
        name: Unique family name.
        help: Help text, without the stability prefix.
        type: Metric type of the family.
        stability: Stability level. Stable families prefix their help text with `[STABLE]`.
        label_names: Label names every sample carries, in rendering order. None marks a passthrough family whose
            label names depend on the projected object.
    """

    name: str
    help: str
    type: MetricType = MetricType.GAUGE
    stability: StabilityLevel = StabilityLevel.ALPHA
    label_names: Optional[Tuple[str, ...]] = ()

    @property
    def help_text(self) -> str:
        """Return the help text as exposed, including the stability prefix."""
        if self.stability == StabilityLevel.STABLE:
            return f"[{self.stability.value}] {self.help}"
        return self.help

    @property
    def has_static_labels(self) -> bool:
        return self.label_names is not None

    def render(self) -> str:
        """Return the `# HELP` and `# TYPE` lines of the family."""
        return f"# HELP {self.name} {escape_help(self.help_text)}\n# TYPE {self.name} {self.type.value}"


@dataclass(frozen=True)
class Sample:
    """One label set and value within a family."""

    labels: Dict[str, str]
    value: float

    def with_labels(self, keys: Tuple[str, ...], values: Tuple[str, ...]) -> "Sample":
        """Return a copy with the given labels placed before the existing ones."""
        return Sample(labels={**dict(zip(keys, values)), **self.labels}, value=self.value)


@dataclass
class Family:
    """A family header together with the samples of one projection."""

    header: FamilyHeader
    samples: List[Sample] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.header.name
