"""REST client for the hosted relational backend.

Talks to a PostgREST-style API (``/rest/v1/<table>?column=eq.value``) and
implements the CandidateSource, PropertyLookup and ProfileStore interfaces.

API Details:
    Candidates: user_preferences joined to profiles, filtered on
        property_alerts, email_notifications and profile role
    Properties: property_listings filtered on id and status=approved
    Tiers: profiles.subscription_tier by profile id
    Authentication: service key sent as ``apikey`` and bearer token
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from alert_engine.domain.models import BuyerCandidate, Property
from alert_engine.logging import get_logger

from .base import CandidateSource, ProfileStore, PropertyLookup
from .exceptions import (
    BackendConfigurationError,
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
)

logger = get_logger(__name__, component="backend")

PREFERENCE_COLUMNS = (
    "budget_range",
    "preferred_areas",
    "property_type_preferences",
    "preferred_features",
    "preferred_square_feet_min",
    "preferred_square_feet_max",
)

CANDIDATE_SELECT = (
    "user_id,"
    + ",".join(PREFERENCE_COLUMNS)
    + ",profiles!inner(id,email,full_name,role,subscription_tier)"
)


class RestBackendClient(CandidateSource, PropertyLookup, ProfileStore):
    """Backend client built on a shared requests Session.

    Every request carries ``timeout``; a timeout surfaces as
    BackendTimeoutError so one slow call fails only the current operation.

    Attributes:
        base_url: Backend root URL (without ``/rest/v1``)
        timeout: Per-request timeout in seconds
        buyer_role: Profile role eligible for alerts
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        user_agent: str = "PropertyAlertEngine/1.0",
        buyer_role: str = "buyer",
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise BackendConfigurationError("base_url cannot be empty")
        if not service_key or not service_key.strip():
            raise BackendConfigurationError("service_key cannot be empty")
        if timeout <= 0:
            raise BackendConfigurationError(f"timeout must be positive, got: {timeout}")

        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self.buyer_role = buyer_role

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": user_agent,
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Accept": "application/json",
            }
        )

    def list_eligible_buyers(self) -> List[BuyerCandidate]:
        """Buyers with property alerts and email notifications turned on.

        Rows without a usable profile are logged and left out.
        """
        rows = self._get_rows(
            "user_preferences",
            {
                "select": CANDIDATE_SELECT,
                "property_alerts": "eq.true",
                "email_notifications": "eq.true",
                "profiles.role": f"eq.{self.buyer_role}",
            },
        )

        candidates = []
        for row in rows:
            candidate = self._to_candidate(row)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(
            "Fetched candidate buyers",
            extra={
                "event": "backend.candidates.fetched",
                "row_count": len(rows),
                "candidate_count": len(candidates),
            },
        )
        return candidates

    def get_approved_property(self, property_id: str) -> Optional[Property]:
        rows = self._get_rows(
            "property_listings",
            {
                "select": "*",
                "id": f"eq.{property_id}",
                "status": "eq.approved",
                "limit": "1",
            },
        )
        if not rows:
            return None

        try:
            return Property.model_validate(rows[0])
        except ValidationError as e:
            raise BackendResponseError(
                f"Property {property_id} has an unexpected shape: {e.error_count()} invalid field(s)"
            ) from e

    def get_subscription_tier(self, buyer_id: str) -> Optional[str]:
        rows = self._get_rows(
            "profiles",
            {"select": "subscription_tier", "id": f"eq.{buyer_id}", "limit": "1"},
        )
        if not rows:
            return None
        return rows[0].get("subscription_tier") or "free"

    def close(self) -> None:
        self._session.close()

    def _to_candidate(self, row: Dict[str, Any]) -> Optional[BuyerCandidate]:
        profile = row.get("profiles")
        if isinstance(profile, list):
            profile = profile[0] if profile else None
        if not isinstance(profile, dict) or not profile.get("email"):
            logger.warning(
                "Skipping candidate without a usable profile",
                extra={"event": "backend.candidates.skipped", "buyer_id": row.get("user_id")},
            )
            return None

        preferences = {key: row.get(key) for key in PREFERENCE_COLUMNS}
        try:
            return BuyerCandidate(
                buyer_id=row.get("user_id") or profile.get("id"),
                email=profile["email"],
                full_name=profile.get("full_name"),
                subscription_tier=profile.get("subscription_tier"),
                raw_preferences=preferences,
            )
        except ValidationError as e:
            logger.warning(
                "Skipping candidate with invalid identity data",
                extra={
                    "event": "backend.candidates.skipped",
                    "buyer_id": row.get("user_id"),
                    "error_count": e.error_count(),
                },
            )
            return None

    def _get_rows(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        data = self._make_request(f"{self.base_url}{self.REST_PATH}/{table}", params=params)
        if not isinstance(data, list):
            raise BackendResponseError(
                f"Expected JSON array from {table}, got {type(data).__name__}"
            )
        return [row for row in data if isinstance(row, dict)]

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body.

        Raises:
            BackendHTTPError: On 4xx/5xx status or connection failure
            BackendTimeoutError: On request timeout
            BackendResponseError: On invalid JSON
        """
        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "backend.request.started",
                    "method": method,
                    "url": url,
                    "timeout": self.timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "backend.request.timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise BackendTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "backend.request.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise BackendHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "backend.request.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise BackendHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "backend.request.error", "error_type": "JSONDecodeError", "url": url},
            )
            raise BackendResponseError(f"Failed to parse JSON response from {url}: {e}") from e

        logger.debug(
            "HTTP request succeeded",
            extra={
                "event": "backend.request.succeeded",
                "status_code": response.status_code,
                "url": url,
            },
        )
        return data
