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

"""Text exposition of projected metric families."""

from typing import Iterable, List

from .codec import escape_label_value, format_value
from .family import Family, FamilyHeader, Sample


def render_sample(name: str, sample: Sample) -> str:
    """Render one sample line, labels in the order the sample carries them.

    Example:
        >>> render_sample("kube_node_role", Sample(labels={"node": "n1", "role": "worker"}, value=1.0))
        'kube_node_role{node="n1",role="worker"} 1'
    """
    value = format_value(sample.value)
    if not sample.labels:
        return f"{name} {value}"
    labels = ",".join(f'{key}="{escape_label_value(val)}"' for key, val in sample.labels.items())
    return f"{name}{{{labels}}} {value}"


def render_family(family: Family) -> str:
    """Render the header lines followed by one line per sample, newline terminated."""
    lines: List[str] = [family.header.render()]
    lines.extend(render_sample(family.name, sample) for sample in family.samples)
    return "\n".join(lines) + "\n"


def render_headers(headers: Iterable[FamilyHeader]) -> str:
    """Render only the header lines of the given families."""
    return "".join(header.render() + "\n" for header in headers)


def render_families(families: Iterable[Family]) -> str:
    """Render families in the order given."""
    return "".join(render_family(family) for family in families)
