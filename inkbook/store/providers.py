"""
Provider profile lookup.

Profiles are kept as raw documents, the way the profile service hands them
over, and parsed into ``Provider`` on every read. A document that no longer
parses surfaces as ``ValidationError`` so callers can decide how to degrade.
"""

import threading
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from inkbook.errors import ProviderNotFoundError, ValidationError, describe_pydantic_error
from inkbook.logging_context import get_request_logger
from inkbook.schemas.provider_schema import Provider, WorkingHours

logger = get_request_logger(__name__)


class ProviderDirectory:
    """In-memory ``providers`` collection keyed by provider id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, dict[str, Any]] = {}

    def save(self, profile: Union[Provider, dict[str, Any]]) -> None:
        """Store a provider profile. Dicts are stored as given, unvalidated."""
        document = profile.model_dump() if isinstance(profile, Provider) else dict(profile)
        provider_id = document.get("id")
        if not provider_id:
            raise ValidationError("Provider profile needs an id")
        with self._lock:
            self._documents[provider_id] = document
        logger.debug("Saved provider profile %s", provider_id)

    def register(self, provider_id: str, **fields: Any) -> Provider:
        """Validate and store a new provider, returning the parsed record."""
        try:
            provider = Provider(id=provider_id, **fields)
        except PydanticValidationError as e:
            raise ValidationError(describe_pydantic_error(e)) from None
        self.save(provider)
        logger.info("Provider registered: %s", provider_id)
        return provider

    def get_provider(self, provider_id: str) -> Provider:
        """
        Look up a provider's scheduling profile.

        Raises:
            ProviderNotFoundError: If no profile exists.
            ValidationError: If the stored profile is corrupt.
        """
        with self._lock:
            document = self._documents.get(provider_id)
        if document is None:
            raise ProviderNotFoundError(provider_id)
        try:
            return Provider.model_validate(document)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Provider {provider_id} has an invalid profile: {describe_pydantic_error(e)}"
            ) from None

    def update_availability(self, provider_id: str, **changes: Any) -> Provider:
        """Apply a settings change to a provider's working hours."""
        provider = self.get_provider(provider_id)
        try:
            hours = WorkingHours.model_validate({**provider.availability.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(describe_pydantic_error(e)) from None
        updated = provider.model_copy(update={"availability": hours})
        self.save(updated)
        logger.info("Availability updated for provider %s: %s", provider_id, changes)
        return updated

    def reset(self) -> None:
        """Remove all profiles. Used by test fixtures for isolation."""
        with self._lock:
            self._documents.clear()
