"""
Record types for offices, projects and office analyses.

Records travel between the resolver and its caller as camelCase dictionaries
(the shape the document store keeps). Inside the engine they are dataclasses
so every field merge names the field it touches.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


@dataclass
class OfficeMetadata:
    """Version bookkeeping for an office record."""

    scraped_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    data_version: int = 0
    custom_data_exists: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scrapedAt": _format_datetime(self.scraped_at),
            "lastUpdated": _format_datetime(self.last_updated),
            "dataVersion": self.data_version,
            "customDataExists": self.custom_data_exists,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OfficeMetadata":
        data = data or {}
        try:
            data_version = int(data.get("dataVersion") or 0)
        except (TypeError, ValueError):
            data_version = 0
        return cls(
            scraped_at=_parse_datetime(data.get("scrapedAt")),
            last_updated=_parse_datetime(data.get("lastUpdated")),
            data_version=data_version,
            custom_data_exists=bool(data.get("customDataExists", False)),
        )


@dataclass
class Office:
    """A business listing as scraped from the mapping site."""

    # Listing fields refreshed by every scrape, with their camelCase keys
    SCRAPED_FIELDS: ClassVar[Dict[str, str]] = {
        "name": "name",
        "address": "address",
        "category": "category",
        "phone": "phone",
        "website": "website",
        "email": "email",
        "rating": "rating",
        "reviews": "reviews",
        "hours": "hours",
        "description": "description",
        "city": "city",
        "business_labels": "businessLabels",
    }
    # Stable identifiers: assigned once, never replaced by a later scrape
    IDENTITY_FIELDS: ClassVar[Dict[str, str]] = {
        "place_id": "placeId",
        "unique_id": "uniqueId",
    }
    # Only an explicit user edit may change these
    PROTECTED_FIELDS: ClassVar[Dict[str, str]] = {
        "modified_name": "modifiedName",
        "custom_data": "customData",
    }

    name: str = ""
    address: str = ""
    place_id: Optional[str] = None
    unique_id: Optional[str] = None
    category: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    hours: Optional[str] = None
    description: Optional[str] = None
    city: Optional[str] = None
    business_labels: Optional[List[str]] = None
    modified_name: Optional[str] = None
    custom_data: Optional[Dict[str, Any]] = None
    metadata: OfficeMetadata = field(default_factory=OfficeMetadata)
    existed_in_database: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _key_map(cls) -> Dict[str, str]:
        return {**cls.SCRAPED_FIELDS, **cls.IDENTITY_FIELDS, **cls.PROTECTED_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase document shape, omitting unset fields."""
        data = dict(self.extra)
        for attr, key in self._key_map().items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        if self.custom_data is not None and "lastModified" in self.custom_data:
            data["customData"] = {
                **self.custom_data,
                "lastModified": _format_datetime(self.custom_data["lastModified"]),
            }
        data["metadata"] = self.metadata.to_dict()
        if self.existed_in_database is not None:
            data["existedInDatabase"] = self.existed_in_database
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Office":
        data = dict(data or {})
        kwargs: Dict[str, Any] = {}
        for attr, key in cls._key_map().items():
            if key in data:
                kwargs[attr] = data.pop(key)
        kwargs["name"] = _as_text(kwargs.get("name"))
        kwargs["address"] = _as_text(kwargs.get("address"))
        if isinstance(kwargs.get("custom_data"), dict):
            custom_data = dict(kwargs["custom_data"])
            if "lastModified" in custom_data:
                custom_data["lastModified"] = (
                    _parse_datetime(custom_data["lastModified"])
                    or custom_data["lastModified"]
                )
            kwargs["custom_data"] = custom_data
        kwargs["metadata"] = OfficeMetadata.from_dict(data.pop("metadata", None))
        kwargs["existed_in_database"] = data.pop("existedInDatabase", None)
        kwargs["extra"] = data
        return cls(**kwargs)


@dataclass
class Project:
    """A project attributed to one office, extracted from free text."""

    name: str = ""
    description: str = ""
    location: str = ""
    use_case: str = ""
    size: str = ""
    status: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS: ClassVar[Dict[str, str]] = {
        "name": "name",
        "description": "description",
        "location": "location",
        "use_case": "useCase",
        "size": "size",
        "status": "status",
    }

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        for attr, key in self._KEYS.items():
            value = getattr(self, attr)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        data = dict(data or {})
        kwargs = {attr: _as_text(data.pop(key, "")) for attr, key in cls._KEYS.items()}
        return cls(extra=data, **kwargs)


class _Section:
    """Shared (de)serialization for the analysis sections.

    Each dataclass field declares its camelCase key in ``metadata["key"]``.
    """

    def to_dict(self) -> Dict[str, Any]:
        return {f.metadata["key"]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data if isinstance(data, dict) else {}
        kwargs = {}
        for f in fields(cls):
            value = data.get(f.metadata["key"])
            if f.default_factory is list:
                kwargs[f.name] = [_as_text(v) for v in _as_list(value)]
            elif f.type is int:
                try:
                    kwargs[f.name] = int(value or 0)
                except (TypeError, ValueError):
                    kwargs[f.name] = 0
            else:
                kwargs[f.name] = _as_text(value)
        return cls(**kwargs)

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


def _key(name: str, **kwargs):
    return field(metadata={"key": name}, **kwargs)


@dataclass
class TeamInfo(_Section):
    team_size: str = _key("teamSize", default="")
    number_of_people: int = _key("numberOfPeople", default=0)
    specific_architects: List[str] = _key("specificArchitects", default_factory=list)
    roles: List[str] = _key("roles", default_factory=list)


@dataclass
class RelationsInfo(_Section):
    construction_companies: List[str] = _key("constructionCompanies", default_factory=list)
    other_arch_offices: List[str] = _key("otherArchOffices", default_factory=list)
    partners: List[str] = _key("partners", default_factory=list)
    collaborators: List[str] = _key("collaborators", default_factory=list)


@dataclass
class FundingInfo(_Section):
    budget: str = _key("budget", default="")
    funding_sources: List[str] = _key("fundingSources", default_factory=list)
    financial_info: str = _key("financialInfo", default="")
    investment_details: str = _key("investmentDetails", default="")


@dataclass
class ClientsInfo(_Section):
    past_clients: List[str] = _key("pastClients", default_factory=list)
    present_clients: List[str] = _key("presentClients", default_factory=list)
    client_types: List[str] = _key("clientTypes", default_factory=list)
    client_industries: List[str] = _key("clientIndustries", default_factory=list)


SECTION_NAMES = ("team", "relations", "funding", "clients")


@dataclass
class AnalysisInput:
    """One freshly extracted analysis for an office."""

    projects: List[Project] = field(default_factory=list)
    team: TeamInfo = field(default_factory=TeamInfo)
    relations: RelationsInfo = field(default_factory=RelationsInfo)
    funding: FundingInfo = field(default_factory=FundingInfo)
    clients: ClientsInfo = field(default_factory=ClientsInfo)
    confidence: float = 0.0
    analysis_notes: str = ""
    original_language: Optional[str] = None
    translated_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "projects": [project.to_dict() for project in self.projects],
            "team": self.team.to_dict(),
            "relations": self.relations.to_dict(),
            "funding": self.funding.to_dict(),
            "clients": self.clients.to_dict(),
            "confidence": self.confidence,
            "analysisNotes": self.analysis_notes,
        }
        if self.original_language is not None:
            data["originalLanguage"] = self.original_language
        if self.translated_text is not None:
            data["translatedText"] = self.translated_text
        return data

    @staticmethod
    def _common_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            confidence = float(data.get("confidence") or 0)
        except (TypeError, ValueError):
            confidence = 0.0
        return {
            "projects": [
                Project.from_dict(p) for p in _as_list(data.get("projects")) if isinstance(p, dict)
            ],
            "team": TeamInfo.from_dict(data.get("team")),
            "relations": RelationsInfo.from_dict(data.get("relations")),
            "funding": FundingInfo.from_dict(data.get("funding")),
            "clients": ClientsInfo.from_dict(data.get("clients")),
            "confidence": confidence,
            "analysis_notes": _as_text(data.get("analysisNotes")),
            "original_language": data.get("originalLanguage"),
            "translated_text": data.get("translatedText"),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalysisInput":
        return cls(**cls._common_kwargs(data or {}))


@dataclass
class MergeHistoryEntry:
    """One line of the append-only merge audit trail."""

    analysis_id: str
    merged_at: datetime
    new_projects_count: int
    total_projects_after_merge: int
    feedback: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysisId": self.analysis_id,
            "mergedAt": _format_datetime(self.merged_at),
            "newProjectsCount": self.new_projects_count,
            "totalProjectsAfterMerge": self.total_projects_after_merge,
            "feedback": self.feedback,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MergeHistoryEntry":
        return cls(
            analysis_id=_as_text(data.get("analysisId")),
            merged_at=_parse_datetime(data.get("mergedAt")),
            new_projects_count=int(data.get("newProjectsCount") or 0),
            total_projects_after_merge=int(data.get("totalProjectsAfterMerge") or 0),
            feedback=data.get("feedback") or {},
        )


@dataclass
class AnalysisDocument(AnalysisInput):
    """The persisted, merged analysis of one office."""

    merge_history: List[MergeHistoryEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["mergeHistory"] = [entry.to_dict() for entry in self.merge_history]
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalysisDocument":
        data = data or {}
        history = [
            MergeHistoryEntry.from_dict(entry)
            for entry in _as_list(data.get("mergeHistory"))
            if isinstance(entry, dict)
        ]
        return cls(merge_history=history, **cls._common_kwargs(data))


class OutcomeType(Enum):
    """How an incoming project was folded into the merged list."""

    ADDED = "added"
    UPDATED = "updated"
    BLOCKED = "blocked"


@dataclass
class MergeOutcome:
    project: Project
    reason: str = ""

    outcome_type: ClassVar[OutcomeType]

    def to_dict(self) -> Dict[str, Any]:
        return self.project.to_dict()


@dataclass
class Added(MergeOutcome):
    outcome_type: ClassVar[OutcomeType] = OutcomeType.ADDED


@dataclass
class Updated(MergeOutcome):
    """An auto-merge; ``previous`` snapshots the matched project's fields."""

    previous: Dict[str, str] = field(default_factory=dict)

    outcome_type: ClassVar[OutcomeType] = OutcomeType.UPDATED

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        data["previousStatus"] = self.previous.get("status")
        data["previousDescription"] = self.previous.get("description")
        data["previousSize"] = self.previous.get("size")
        data["previousLocation"] = self.previous.get("location")
        data["previousUseCase"] = self.previous.get("use_case")
        return data


@dataclass
class Blocked(MergeOutcome):
    """A near-duplicate that was reported instead of merged."""

    similar_to: str = ""

    outcome_type: ClassVar[OutcomeType] = OutcomeType.BLOCKED

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        data["similarTo"] = self.similar_to
        return data
