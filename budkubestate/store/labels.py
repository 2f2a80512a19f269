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

"""Label resolution rules shared by the resource family generators.

Covers sanitizing arbitrary keys into label names, passing object tags through as labels, resolving a label from
several competing sources in precedence order, and expanding a closed enumeration into one-hot samples.
"""

import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..commons.constants import (
    ALLOW_ALL,
    CONDITION_STATUSES,
    NODE_ROLE_FALLBACK_LABEL,
    NODE_ROLE_LABEL,
    NODE_ROLE_LABEL_PREFIX,
)
from ..metric.codec import bool_value


_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

RoleStrategy = Callable[[Mapping[str, str]], List[str]]


def sanitize_label_name(name: str) -> str:
    """Replace every character that is not valid in a label name with an underscore.

    Example:
        >>> sanitize_label_name("nvidia.com/gpu")
        'nvidia_com_gpu'
    """
    return _INVALID_LABEL_CHARS.sub("_", name)


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1_\2", name).lower()


def passthrough_label_name(prefix: str, key: str) -> str:
    """Normalize an object tag key into a prefixed label name.

    Example:
        >>> passthrough_label_name("label", "topology.kubernetes.io/zoneName")
        'label_topology_kubernetes_io_zone_name'
    """
    return f"{prefix}_{to_snake_case(sanitize_label_name(key))}"


def passthrough_label_names(prefix: str, keys: Sequence[str]) -> List[str]:
    """Normalize keys into label names, in sorted key order.

    Keys colliding after normalization are told apart with `_conflictN` suffixes, numbered in sorted key order.
    """
    names: List[str] = []
    conflicts: Dict[str, List[int]] = {}
    for key in sorted(keys):
        name = passthrough_label_name(prefix, key)
        conflicts.setdefault(name, []).append(len(names))
        names.append(name)

    for name, positions in conflicts.items():
        if len(positions) > 1:
            for count, position in enumerate(positions, start=1):
                names[position] = f"{name}_conflict{count}"
    return names


class LabelPassthrough:
    """Passes an object's tags (labels or annotations) through as prefixed labels.

    The allow-list is fixed at construction:
      - empty: nothing is passed through.
      - `["*"]`: every tag is passed through, so the label names depend on the object.
      - explicit keys: exactly those keys, in sorted order; tags missing from an object render as "".
    """

    def __init__(self, prefix: str, allowlist: Optional[Sequence[str]] = None):
        self.prefix = prefix
        allowlist = list(allowlist or [])
        self.allow_all = ALLOW_ALL in allowlist
        self.keys: Tuple[str, ...] = () if self.allow_all else tuple(sorted(set(allowlist)))
        self._names = tuple(passthrough_label_names(prefix, self.keys))

    @property
    def enabled(self) -> bool:
        return self.allow_all or bool(self.keys)

    @property
    def label_names(self) -> Optional[Tuple[str, ...]]:
        """Label names every resolved mapping carries, or None when they depend on the object."""
        if self.allow_all:
            return None
        return self._names

    def resolve(self, tags: Mapping[str, str]) -> Dict[str, str]:
        """Return the passthrough labels for the given tags."""
        if self.allow_all:
            keys = sorted(tags)
            return dict(zip(passthrough_label_names(self.prefix, keys), (tags[key] for key in keys)))
        return {name: tags.get(key, "") for name, key in zip(self._names, self.keys)}


def prefixed_role_markers(labels: Mapping[str, str]) -> List[str]:
    """Return every role named by a `node-role.kubernetes.io/<role>` label key, sorted."""
    roles = {key[len(NODE_ROLE_LABEL_PREFIX) :] for key in labels if key.startswith(NODE_ROLE_LABEL_PREFIX)}
    return sorted(role for role in roles if role)


def single_role_label(key: str) -> RoleStrategy:
    """Build a strategy reading one role name from the value of the given label."""

    def strategy(labels: Mapping[str, str]) -> List[str]:
        role = labels.get(key, "")
        return [role] if role else []

    strategy.__name__ = f"single_role_label[{key}]"
    return strategy


# Highest precedence first
ROLE_STRATEGIES: Tuple[RoleStrategy, ...] = (
    prefixed_role_markers,
    single_role_label(NODE_ROLE_LABEL),
    single_role_label(NODE_ROLE_FALLBACK_LABEL),
)


def resolve_roles(labels: Mapping[str, str], strategies: Sequence[RoleStrategy] = ROLE_STRATEGIES) -> List[str]:
    """Resolve node roles from the first strategy that yields any role.

    Args:
        labels: Node labels.
        strategies: Strategies in precedence order.

    Returns:
        The roles of the winning strategy, or an empty list.
    """
    for strategy in strategies:
        roles = strategy(labels)
        if roles:
            return roles
    return []


def normalize_enum_value(observed: str, enumeration: Sequence[str] = CONDITION_STATUSES) -> str:
    """Match an observed state against the enumeration, case-insensitively. Unmatched states map to the last value."""
    value = (observed or "").lower()
    return value if value in enumeration else enumeration[-1]


def expand_enum(observed: str, enumeration: Sequence[str] = CONDITION_STATUSES) -> List[Tuple[str, float]]:
    """One-hot encode an observed state over the whole enumeration.

    Example:
        >>> expand_enum("Unknown")
        [('true', 0.0), ('false', 0.0), ('unknown', 1.0)]
    """
    state = normalize_enum_value(observed, enumeration)
    return [(value, bool_value(value == state)) for value in enumeration]
