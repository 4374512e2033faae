"""
Availability data models produced by each scrape.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


@dataclass
class SearchQuery:
    """Postcode/state query that was typed into the booking site's search."""

    postcode: str
    state: str
    name: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = f"{self.postcode}, {self.state}"

    def validate(self) -> bool:
        """Validate the search query."""
        if not self.postcode or not str(self.postcode).strip():
            raise ValueError("Search postcode cannot be empty")

        if not self.state or not str(self.state).strip():
            raise ValueError("Search state cannot be empty")

        return True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchQuery":
        return cls(
            postcode=str(data.get("postcode") or ""),
            state=str(data.get("state") or ""),
            name=str(data.get("name") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"postcode": self.postcode, "state": self.state, "name": self.name}


@dataclass
class AvailabilityRecord:
    """One appointment location row from a single scrape."""

    id: str
    name: str
    full_name: str = ""
    address: str = ""
    distance: str = ""
    availability: str = ""
    is_available: bool = False
    search_query: Optional[SearchQuery] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvailabilityRecord":
        """
        Build a record from a scraped or persisted mapping.

        Missing fields fall back to empty values. Both snake_case keys and
        the booking site's camelCase keys are accepted.
        """
        query_data = _pick(data, "search_query", "searchLocation", "search_location")
        search_query = None
        if isinstance(query_data, SearchQuery):
            search_query = query_data
        elif isinstance(query_data, Mapping):
            search_query = SearchQuery.from_dict(query_data)

        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            full_name=str(_pick(data, "full_name", "fullName", default="")),
            address=str(_pick(data, "address", default="")),
            distance=str(_pick(data, "distance", default="")),
            availability=str(_pick(data, "availability", default="")),
            is_available=_as_bool(_pick(data, "is_available", "isAvailable")),
            search_query=search_query,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "address": self.address,
            "distance": self.distance,
            "availability": self.availability,
            "is_available": self.is_available,
            "search_query": self.search_query.to_dict() if self.search_query else None,
        }


@dataclass
class SearchResult:
    """All locations returned by one search query."""

    search_query: SearchQuery
    locations: List[AvailabilityRecord]

    @property
    def available_count(self) -> int:
        return sum(1 for location in self.locations if location.is_available)

    @property
    def not_available_count(self) -> int:
        return len(self.locations) - self.available_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_query": self.search_query.to_dict(),
            "locations": [location.to_dict() for location in self.locations],
            "available_count": self.available_count,
            "not_available_count": self.not_available_count,
        }


@dataclass
class CrawlResult:
    """Combined output of one crawl across every configured search query."""

    timestamp: datetime
    search_results: List[SearchResult] = field(default_factory=list)
    message: str = ""

    @property
    def locations(self) -> List[AvailabilityRecord]:
        return [
            location
            for search_result in self.search_results
            for location in search_result.locations
        ]

    @property
    def available_locations(self) -> List[AvailabilityRecord]:
        return [location for location in self.locations if location.is_available]

    @property
    def not_available_locations(self) -> List[AvailabilityRecord]:
        return [location for location in self.locations if not location.is_available]

    def to_artifact(self, search_time: Optional[datetime] = None) -> Dict[str, Any]:
        """Shape of the "latest results" JSON artifact."""
        locations = self.locations
        available = self.available_locations
        return {
            "has_available": len(available) > 0,
            "total_searches": len(self.search_results),
            "total_locations": len(locations),
            "available_count": len(available),
            "not_available_count": len(locations) - len(available),
            "search_time": (search_time or datetime.now()).isoformat(),
            "crawl_timestamp": self.timestamp.isoformat(),
            "search_results": [result.to_dict() for result in self.search_results],
            "available_locations": [location.to_dict() for location in available],
            "not_available_locations": [
                location.to_dict() for location in self.not_available_locations
            ],
            "all_locations": [location.to_dict() for location in locations],
        }
