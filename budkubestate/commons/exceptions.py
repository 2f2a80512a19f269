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

"""Defines custom exceptions to handle specific error cases gracefully."""

from typing import Any, Dict, Optional


class KubeStateException(Exception):
    """Base exception for all budkubestate errors."""

    def __init__(self, message: str = "A kube state projection error occurred", details: Optional[Dict[str, Any]] = None):
        """Initialize KubeStateException."""
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        """Return the message along with any details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RegistryConfigurationError(KubeStateException):
    """Raise when a family registry is built from an invalid generator table.

    This is a construction-time failure and is never raised while projecting an object.
    """

    def __init__(self, message: str, errors: Optional[list] = None):
        """Initialize RegistryConfigurationError with the list of individual problems."""
        self.errors = errors or []
        super().__init__(message, details={"errors": self.errors} if self.errors else None)


class QuantityParseError(KubeStateException):
    """Raise when a resource quantity cannot be parsed or converted."""

    def __init__(self, quantity: Any, reason: str = ""):
        """Initialize QuantityParseError."""
        self.quantity = quantity
        message = f"Invalid quantity: {quantity!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ResourceConversionError(KubeStateException):
    """Raise when an API object cannot be converted into a resource model."""

    pass
