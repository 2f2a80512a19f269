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

"""Quantity and value codec.

Converts Kubernetes resource quantities, booleans and timestamps into the float values carried by samples, and
renders float values in the text exposition format.
"""

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any, Optional, Union

from kubernetes.utils import parse_quantity as _parse_k8s_quantity

from ..commons.constants import (
    RESOURCE_ATTACHABLE_VOLUMES_PREFIX,
    RESOURCE_CPU,
    RESOURCE_DEFAULT_NAMESPACE_PREFIX,
    RESOURCE_EPHEMERAL_STORAGE,
    RESOURCE_HUGEPAGES_PREFIX,
    RESOURCE_MEMORY,
    RESOURCE_PODS,
    RESOURCE_REQUESTS_PREFIX,
    RESOURCE_STORAGE,
    ResourceUnit,
)
from ..commons.exceptions import QuantityParseError


Quantity = Union[str, int, float, Decimal]

_QUALIFIED_NAME_PART = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$")
_DNS_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")

_BYTE_RESOURCES = frozenset({RESOURCE_MEMORY, RESOURCE_STORAGE, RESOURCE_EPHEMERAL_STORAGE})


def parse_quantity(quantity: Quantity) -> Decimal:
    """Parse a Kubernetes quantity into an exact decimal value.

    Args:
        quantity: Quantity in its API form (e.g. "4.3", "2G", "512Mi", "250m").

    Returns:
        The quantity as a `Decimal` in base units.

    Raises:
        QuantityParseError: If the quantity is malformed or not finite.
    """
    if quantity is None or isinstance(quantity, bool):
        raise QuantityParseError(quantity, "not a quantity")

    try:
        value = _parse_k8s_quantity(quantity)
    except (ValueError, TypeError, InvalidOperation) as e:
        raise QuantityParseError(quantity, str(e)) from e

    if not value.is_finite():
        raise QuantityParseError(quantity, "not finite")
    return value


def _is_qualified_name(name: str) -> bool:
    prefix, sep, short_name = name.rpartition("/")
    if sep and (not prefix or len(prefix) > 253 or not _DNS_SUBDOMAIN.match(prefix)):
        return False
    return 0 < len(short_name) <= 63 and bool(_QUALIFIED_NAME_PART.match(short_name))


def is_native_resource(name: str) -> bool:
    """Return whether the resource name belongs to the default Kubernetes namespace."""
    return "/" not in name or RESOURCE_DEFAULT_NAMESPACE_PREFIX in name


def is_extended_resource(name: str) -> bool:
    """Return whether the resource name is a vendor extended resource such as `nvidia.com/gpu`."""
    if is_native_resource(name) or name.startswith(RESOURCE_REQUESTS_PREFIX):
        return False
    return _is_qualified_name(name)


def classify_resource(name: str) -> Optional[ResourceUnit]:
    """Return the unit class of a node resource name.

    Args:
        name: Resource name as found in a node's capacity or allocatable list.

    Returns:
        The unit class, or None when the resource cannot be classified.
    """
    if name == RESOURCE_CPU:
        return ResourceUnit.CORE
    if name in _BYTE_RESOURCES:
        return ResourceUnit.BYTE
    if name == RESOURCE_PODS:
        return ResourceUnit.INTEGER
    if name.startswith(RESOURCE_HUGEPAGES_PREFIX) or name.startswith(RESOURCE_ATTACHABLE_VOLUMES_PREFIX):
        return ResourceUnit.BYTE
    if is_extended_resource(name):
        return ResourceUnit.INTEGER
    return None


def quantity_value(quantity: Quantity, unit: ResourceUnit) -> float:
    """Convert a quantity into the base form of its unit class.

    CPU keeps milli-core resolution, every other unit class is rounded up to a whole number.

    Raises:
        QuantityParseError: If the quantity is malformed.
    """
    value = parse_quantity(quantity)
    if unit == ResourceUnit.CORE:
        return float((value * 1000).to_integral_value(rounding=ROUND_CEILING) / 1000)
    return float(value.to_integral_value(rounding=ROUND_CEILING))


def bool_value(flag: Any) -> float:
    """Encode a boolean as 1.0 or 0.0."""
    return 1.0 if flag else 0.0


def timestamp_value(moment: datetime) -> float:
    """Return a datetime as Unix epoch seconds. Naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def format_value(value: float) -> str:
    """Render a sample value the way Go's `strconv.FormatFloat(v, 'g', -1, 64)` does.

    Uses the shortest digit string that round-trips, in scientific notation when the decimal exponent is below -4
    or at least 6.

    Example:
        >>> format_value(1.5e9), format_value(4.3), format_value(555.0), format_value(0.00001)
        ('1.5e+09', '4.3', '555', '1e-05')
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    prefix = "-" if sign else ""
    point = exponent + len(digits)
    decimal_exponent = point - 1

    if decimal_exponent < -4 or decimal_exponent >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exponent_sign = "-" if decimal_exponent < 0 else "+"
        return f"{prefix}{mantissa}e{exponent_sign}{abs(decimal_exponent):02d}"

    if exponent >= 0:
        return f"{prefix}{digits}{'0' * exponent}"
    if point > 0:
        return f"{prefix}{digits[:point]}.{digits[point:]}"
    return f"{prefix}0.{'0' * -point}{digits}"


def escape_label_value(value: str) -> str:
    """Escape a label value for the text exposition format."""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def escape_help(text: str) -> str:
    """Escape a help text for the text exposition format."""
    return text.replace("\\", "\\\\").replace("\n", "\\n")
