"""Firestore REST implementation of the claim store."""

import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field

from ...domain.models.claim import ClaimRecord, ClaimStatus, ClaimSubmission, StoredClaim, utc_now
from ...domain.models.item import Item, ItemCategory, ItemStatus, ItemType
from ...domain.models.verification import ClaimVerificationResult
from ...domain.ports.claim_store import ClaimStore

logger = logging.getLogger(__name__)

ITEMS = "foundItems"
CLAIMS = "claims"
NOTIFICATIONS = "notifications"

_FRACTION = re.compile(r"\.(\d{6})\d+")


class FirestoreConfig(BaseModel):
    """Configuration for the Firestore REST adapter."""

    project_id: str = Field(..., description="Google Cloud project id")
    database: str = Field(default="(default)", description="Firestore database id")
    api_key: Optional[str] = Field(default=None, description="Web API key sent as ?key=")
    bearer_token: Optional[str] = Field(default=None, description="OAuth bearer token")
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds")
    cache_ttl: float = Field(default=30.0, description="Seconds candidate pools stay cached")
    cache_size: int = Field(default=256, description="Maximum cached candidate pools")

    @property
    def documents_url(self) -> str:
        return (
            f"https://firestore.googleapis.com/v1/projects/{self.project_id}"
            f"/databases/{self.database}/documents"
        )

    @classmethod
    def from_env(cls) -> "FirestoreConfig":
        """Create configuration from environment variables."""
        project_id = os.getenv("FIRESTORE_PROJECT_ID", "")
        if not project_id:
            logger.warning("⚠️ FIRESTORE_PROJECT_ID is not set")
        return cls(
            project_id=project_id,
            api_key=os.getenv("FIRESTORE_API_KEY") or None,
            bearer_token=os.getenv("FIRESTORE_BEARER_TOKEN") or None,
            cache_ttl=float(os.getenv("FIRESTORE_CACHE_TTL_SECONDS", "30")),
        )


# Typed value encoding

def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a Python value as a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(entry) for entry in value]}}
    return {"stringValue": str(value)}


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a Firestore typed value."""
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return value["booleanValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(entry) for entry in value["arrayValue"].get("values", [])]
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO string or timestamp value into an aware datetime."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        text = _FRACTION.sub(r".\1", value.replace("Z", "+00:00"))
        moment = datetime.fromisoformat(text)
    else:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _document_id(document: Dict[str, Any]) -> str:
    return document["name"].rsplit("/", 1)[-1]


def item_from_document(document: Dict[str, Any]) -> Item:
    """Build an item from a ``foundItems`` document."""
    return _item_from_data(_document_id(document), decode_fields(document.get("fields", {})))


def _item_from_data(item_id: str, data: Dict[str, Any]) -> Item:
    return Item(
        id=item_id,
        name=data.get("name") or "",
        category=data.get("category") or ItemCategory.OTHER,
        description=data.get("description") or "",
        location=data.get("location") or "other",
        date_found=data.get("dateFound") or "",
        image_url=data.get("imageUrl") or "",
        status=data.get("status") or ItemStatus.AVAILABLE,
        item_type=data.get("type") or ItemType.FOUND,
        created_by=data.get("createdBy"),
        created_by_email=data.get("createdByEmail"),
    )


def item_to_fields(item: Item) -> Dict[str, Any]:
    return {
        "name": item.name,
        "category": item.category.value,
        "description": item.description,
        "location": item.location.value,
        "dateFound": item.date_found,
        "imageUrl": item.image_url,
        "status": item.status.value,
        "type": item.item_type.value,
        "createdBy": item.created_by,
        "createdByEmail": item.created_by_email,
    }


def claim_to_fields(record: ClaimRecord) -> Dict[str, Any]:
    """Flatten a claim record into ``claims`` document fields."""
    submission = record.submission
    item = submission.item
    return {
        "itemId": submission.item_id,
        "itemName": item.name if item else "",
        "item": item_to_fields(item) if item else {},
        "claimerName": submission.claimer_name,
        "claimerEmail": submission.claimer_email.lower(),
        "claimerPhone": submission.claimer_phone or "",
        "claimerDescription": submission.claimer_description,
        "securityAnswers": dict(submission.security_answers),
        "proofImages": list(submission.proof_images),
        "userId": submission.user_id,
        "status": record.status.value,
        "claimedAt": record.claimed_at.isoformat(),
        "processedAt": record.processed_at.isoformat() if record.processed_at else None,
        "processedBy": record.processed_by,
        "verification": record.verification.model_dump(mode="json"),
    }


def stored_claim_from_document(document: Dict[str, Any]) -> StoredClaim:
    data = decode_fields(document.get("fields", {}))
    return StoredClaim(
        item_id=data.get("itemId") or "",
        claimer_email=data.get("claimerEmail") or "",
        claimed_at=parse_timestamp(data.get("claimedAt")),
        status=data.get("status") or ClaimStatus.PENDING,
    )


def claim_from_document(document: Dict[str, Any]) -> ClaimRecord:
    """Rebuild a claim record from a ``claims`` document."""
    data = decode_fields(document.get("fields", {}))
    item = _item_from_data(data.get("itemId") or "", data.get("item") or {})
    submission = ClaimSubmission(
        item_id=data.get("itemId") or item.id,
        item=item,
        claimer_name=data.get("claimerName") or "",
        claimer_email=data.get("claimerEmail") or "",
        claimer_phone=data.get("claimerPhone") or None,
        claimer_description=data.get("claimerDescription") or "",
        security_answers=data.get("securityAnswers") or {},
        proof_images=data.get("proofImages") or [],
        user_id=data.get("userId"),
    )
    processed_at = data.get("processedAt")
    return ClaimRecord(
        id=_document_id(document),
        submission=submission,
        verification=ClaimVerificationResult.model_validate(data.get("verification") or {}),
        status=data.get("status") or ClaimStatus.PENDING,
        claimed_at=parse_timestamp(data.get("claimedAt")),
        processed_at=parse_timestamp(processed_at) if processed_at else None,
        processed_by=data.get("processedBy"),
    )


def _field_filter(field: str, value: Any) -> Dict[str, Any]:
    return {"fieldFilter": {"field": {"fieldPath": field}, "op": "EQUAL", "value": encode_value(value)}}


def build_query(collection: str, filters: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """Build a ``runQuery`` body with AND-ed equality filters."""
    query: Dict[str, Any] = {"from": [{"collectionId": collection}]}
    if len(filters) == 1:
        query["where"] = _field_filter(*filters[0])
    elif filters:
        query["where"] = {
            "compositeFilter": {
                "op": "AND",
                "filters": [_field_filter(field, value) for field, value in filters],
            }
        }
    return {"structuredQuery": query}


class FirestoreClaimStore(ClaimStore):
    """Claim store backed by the Firestore REST API.

    Candidate pools returned by ``find_items`` are cached for a short
    time. Single item reads and claim queries always hit the database.
    """

    def __init__(
        self,
        config: FirestoreConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            transport: Custom httpx transport, mainly for tests
        """
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False
        self._item_cache: TTLCache = TTLCache(maxsize=config.cache_size, ttl=config.cache_ttl)

    async def initialize(self) -> None:
        """Create the HTTP client and check database access."""
        if not self._config.project_id:
            raise ConnectionError("Failed to initialize Firestore store: no project id configured")
        try:
            if self._client is None:
                headers = {"Content-Type": "application/json"}
                if self._config.bearer_token:
                    headers["Authorization"] = f"Bearer {self._config.bearer_token}"
                params = {"key": self._config.api_key} if self._config.api_key else None
                self._client = httpx.AsyncClient(
                    base_url=self._config.documents_url,
                    timeout=self._config.timeout,
                    transport=self._transport,
                    headers=headers,
                    params=params,
                )

            response = await self._client.get(f"/{ITEMS}", params={"pageSize": 1})
            response.raise_for_status()
            self._initialized = True
            logger.info(f"✅ Firestore store ready (project {self._config.project_id})")
        except Exception as e:
            self._initialized = False
            if self._client:
                await self._client.aclose()
                self._client = None
            raise ConnectionError(f"Failed to initialize Firestore store: {e}")

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._item_cache.clear()
        self._initialized = False

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Store not initialized")
        return self._client

    async def _run_query(self, collection: str, filters: List[Tuple[str, Any]]) -> List[Dict[str, Any]]:
        client = self._require_client()
        response = await client.post(f"{self._config.documents_url}:runQuery", json=build_query(collection, filters))
        response.raise_for_status()
        return [entry["document"] for entry in response.json() if "document" in entry]

    async def _patch(self, path: str, fields: Dict[str, Any]) -> None:
        client = self._require_client()
        response = await client.patch(
            path,
            params=[("updateMask.fieldPaths", name) for name in fields],
            json={"fields": encode_fields(fields)},
        )
        response.raise_for_status()

    # Items

    async def get_item(self, item_id: str) -> Optional[Item]:
        client = self._require_client()
        response = await client.get(f"/{ITEMS}/{item_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return item_from_document(response.json())

    async def find_items(
        self,
        item_type: ItemType,
        status: Optional[ItemStatus] = None,
        category: Optional[ItemCategory] = None,
    ) -> List[Item]:
        key = (item_type, status, category)
        cached = self._item_cache.get(key)
        if cached is not None:
            logger.debug(f"📦 Candidate pool cache hit for {key}")
            return list(cached)

        filters: List[Tuple[str, Any]] = [("type", item_type.value)]
        if category is not None:
            filters.append(("category", category.value))
        if status is not None:
            filters.append(("status", status.value))

        items = [item_from_document(document) for document in await self._run_query(ITEMS, filters)]
        self._item_cache[key] = items
        return list(items)

    async def update_item_status(self, item_id: str, status: ItemStatus) -> None:
        await self._patch(f"/{ITEMS}/{item_id}", {"status": status.value})
        self._item_cache.clear()

    # Claims

    async def find_claims(
        self,
        item_id: Optional[str] = None,
        claimer_email: Optional[str] = None,
        status: Optional[ClaimStatus] = None,
    ) -> List[StoredClaim]:
        filters: List[Tuple[str, Any]] = []
        if item_id is not None:
            filters.append(("itemId", item_id))
        if claimer_email is not None:
            filters.append(("claimerEmail", claimer_email.lower()))
        if status is not None:
            filters.append(("status", status.value))
        return [stored_claim_from_document(document) for document in await self._run_query(CLAIMS, filters)]

    async def insert_claim(self, record: ClaimRecord) -> str:
        client = self._require_client()
        response = await client.post(
            f"/{CLAIMS}",
            params={"documentId": record.id},
            json={"fields": encode_fields(claim_to_fields(record))},
        )
        response.raise_for_status()
        return record.id

    async def get_claim(self, claim_id: str) -> Optional[ClaimRecord]:
        client = self._require_client()
        response = await client.get(f"/{CLAIMS}/{claim_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return claim_from_document(response.json())

    async def list_claims(self, status: Optional[ClaimStatus] = None) -> List[ClaimRecord]:
        filters = [("status", status.value)] if status is not None else []
        records = [claim_from_document(document) for document in await self._run_query(CLAIMS, filters)]
        return sorted(records, key=lambda record: record.claimed_at, reverse=True)

    async def update_claim_status(
        self,
        claim_id: str,
        status: ClaimStatus,
        processed_by: Optional[str] = None,
    ) -> None:
        await self._patch(f"/{CLAIMS}/{claim_id}", {
            "status": status.value,
            "processedAt": utc_now().isoformat(),
            "processedBy": processed_by,
        })

    # Notifications

    async def insert_notification(self, payload: Dict[str, Any]) -> str:
        client = self._require_client()
        response = await client.post(f"/{NOTIFICATIONS}", json={"fields": encode_fields(payload)})
        response.raise_for_status()
        return _document_id(response.json())

    @property
    def provider_name(self) -> str:
        return "firestore"

    @property
    def is_available(self) -> bool:
        return self._initialized and self._client is not None
