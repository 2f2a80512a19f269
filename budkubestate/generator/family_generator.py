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

"""Family generators and their composition.

A `FamilyGenerator` binds a family header to the function producing its samples. A `FamilyRegistry` is the fixed,
ordered table of generators for one resource type: it is validated once at construction and then projects objects
into families in registry order, or lists the family headers without generating anything.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence, Tuple

from ..commons.constants import MetricType
from ..commons.exceptions import RegistryConfigurationError
from ..commons.logging import get_logger
from ..metric.family import Family, FamilyHeader, Sample


logger = get_logger(__name__)

GenerateFunc = Callable[[Any], List[Sample]]

METRIC_NAME_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
LABEL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass(frozen=True)
class FamilyGenerator:
    """A metric family header bound to the function generating its samples."""

    header: FamilyHeader
    generate: GenerateFunc

    @property
    def name(self) -> str:
        return self.header.name


def _validate_generator(index: int, generator: Any) -> List[str]:
    """Return the configuration problems of a single registry entry."""
    if not isinstance(generator, FamilyGenerator):
        return [f"entry {index}: expected a FamilyGenerator, got {type(generator).__name__}"]

    errors = []
    header = generator.header
    if not isinstance(header, FamilyHeader):
        return [f"entry {index}: header must be a FamilyHeader"]
    if not METRIC_NAME_PATTERN.match(header.name or ""):
        errors.append(f"entry {index}: invalid metric name {header.name!r}")
    if not header.help:
        errors.append(f"{header.name}: help text is empty")
    if header.type not in (MetricType.GAUGE, MetricType.COUNTER):
        errors.append(f"{header.name}: unsupported metric type {header.type!r}")
    if not callable(generator.generate):
        errors.append(f"{header.name}: generate function is not callable")

    if header.has_static_labels:
        for label_name in header.label_names:
            if not LABEL_NAME_PATTERN.match(label_name) or label_name.startswith("__"):
                errors.append(f"{header.name}: invalid label name {label_name!r}")
        if len(set(header.label_names)) != len(header.label_names):
            errors.append(f"{header.name}: duplicate label names {list(header.label_names)}")
    return errors


class FamilyRegistry:
    """Ordered, read-only table of family generators for one resource type.

    The registry holds no per-call state, so `project` and `headers` may be called concurrently.

    Raises:
        RegistryConfigurationError: On construction, if the table is empty, holds duplicate family names or
            holds an invalid entry.
    """

    def __init__(self, generators: Iterable[FamilyGenerator]):
        """Validate and freeze the generator table."""
        self._generators: Tuple[FamilyGenerator, ...] = tuple(generators)

        errors: List[str] = []
        if not self._generators:
            errors.append("registry holds no family generators")

        seen = set()
        for index, generator in enumerate(self._generators):
            entry_errors = _validate_generator(index, generator)
            errors.extend(entry_errors)
            if entry_errors:
                continue
            if generator.name in seen:
                errors.append(f"duplicate family name {generator.name!r}")
            seen.add(generator.name)

        if errors:
            raise RegistryConfigurationError("Invalid family registry configuration", errors=errors)

    def __len__(self) -> int:
        return len(self._generators)

    def headers(self) -> List[FamilyHeader]:
        """Return the header of every family in registry order, without generating any sample."""
        return [generator.header for generator in self._generators]

    def project(self, obj: Any) -> List[Family]:
        """Generate every family for the object, in registry order.

        Args:
            obj: The resource object. It is passed unchanged to every generator.

        Returns:
            One `Family` per registered generator, including families without samples.
        """
        return [self._generate_family(generator, obj) for generator in self._generators]

    @staticmethod
    def _generate_family(generator: FamilyGenerator, obj: Any) -> Family:
        header = generator.header
        try:
            samples = list(generator.generate(obj))
        except Exception as e:
            logger.exception("family_generation_failed", family=header.name, error=str(e))
            return Family(header=header)

        accepted: List[Sample] = []
        seen_label_sets = set()
        for sample in samples:
            if header.has_static_labels and tuple(sample.labels) != header.label_names:
                logger.error(
                    "sample_label_mismatch",
                    family=header.name,
                    expected=list(header.label_names),
                    labels=list(sample.labels),
                )
                continue

            label_set = tuple(sample.labels.items())
            if label_set in seen_label_sets:
                logger.warning("duplicate_sample_dropped", family=header.name, labels=sample.labels)
                continue
            seen_label_sets.add(label_set)
            accepted.append(sample)

        return Family(header=header, samples=accepted)


def compose_metric_gen_funcs(generators: Sequence[FamilyGenerator]) -> Callable[[Any], List[Family]]:
    """Compose the generators into a single function projecting an object into all of their families."""
    return FamilyRegistry(generators).project


def extract_metric_family_headers(generators: Sequence[FamilyGenerator]) -> List[FamilyHeader]:
    """Return the headers of the generators, in order, without generating any sample."""
    return FamilyRegistry(generators).headers()
