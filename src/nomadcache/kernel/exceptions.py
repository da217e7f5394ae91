# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Unified exception hierarchy for nomadcache.

All library exceptions inherit from NomadCacheException, so callers can
catch one root type or a specific subclass.

Categories:
- BusinessException: caller mistakes and invalid configuration
- InfrastructureException: storage media and cache backend failures
- ExternalServiceException: remote resources (image hosts)
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class NomadCacheException(Exception):
    """Base exception for all nomadcache errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CACHE_STORAGE_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(NomadCacheException):
    """Caller-side rule violations."""


class ValidationException(BusinessException):
    """Invalid argument or configuration value."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(NomadCacheException):
    """Infrastructure failures: storage media, cache backends, network."""


class CacheException(InfrastructureException):
    """Base class for failures inside the cache subsystem."""


class StorageUnavailableError(CacheException):
    """The backing storage area cannot be read or written."""


class StorageQuotaExceededError(StorageUnavailableError):
    """A write would exceed the storage area's byte quota."""


class DeserializationError(CacheException):
    """A stored payload is not a valid serialized cache entry."""


# =============================================================================
# External Service Exceptions
# =============================================================================


class ExternalServiceException(InfrastructureException):
    """Failure communicating with an external or third-party resource."""


class ImagePreloadError(ExternalServiceException):
    """An image could not be fetched for warming."""
