"""
Sample - One Station Position Observation

Carries the local E/N/H coordinates plus the optional derived fields the
downstream filtering and serialization stages consume. Synthetic samples use
the same type as real ones so they flow through those stages unchanged.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from utils.time_utils import ensure_aware

# attribute name -> downstream record key
_DERIVED_KEYS: Dict[str, str] = {
    "latitude": "latitude",
    "longitude": "longitude",
    "height": "height",
    "angle": "angle",
    "axis": "axis",
    "plate": "plate",
    "move_e": "moveE",
    "move_n": "moveN",
    "move_h": "moveH",
    "move_total": "moveTotal",
    "day_e": "dayE",
    "day_n": "dayN",
    "day_h": "dayH",
}

DERIVED_FIELDS = tuple(_DERIVED_KEYS)


@dataclass
class Sample:
    """A timestamped E/N/H observation in meters."""
    timestamp: datetime
    e: float
    n: float
    h: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    height: Optional[float] = None
    angle: Optional[float] = None
    axis: Optional[float] = None
    plate: Optional[float] = None
    move_e: Optional[float] = None
    move_n: Optional[float] = None
    move_h: Optional[float] = None
    move_total: Optional[float] = None
    day_e: Optional[float] = None
    day_n: Optional[float] = None
    day_h: Optional[float] = None

    def derived(self, name: str) -> float:
        """Derived field value with missing treated as 0."""
        value = getattr(self, name)
        return value if value is not None else 0.0

    def to_dict(self) -> dict:
        record = {
            "dateTime": ensure_aware(self.timestamp).isoformat(),
            "E": self.e,
            "N": self.n,
            "H": self.h,
        }
        for attr, key in _DERIVED_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                record[key] = value
        return record

    @classmethod
    def from_dict(cls, record: dict) -> "Sample":
        """
        Build a Sample from a downstream record.

        Raises:
            KeyError: if dateTime/E/N/H is missing.
            ValueError: if the timestamp or a coordinate cannot be parsed.
        """
        raw_ts = record["dateTime"]
        if isinstance(raw_ts, datetime):
            timestamp = raw_ts
        else:
            timestamp = datetime.fromisoformat(str(raw_ts).replace("Z", "+00:00"))

        kwargs = {}
        for attr, key in _DERIVED_KEYS.items():
            value = record.get(key)
            if value is not None:
                kwargs[attr] = float(value)

        return cls(
            timestamp=ensure_aware(timestamp),
            e=float(record["E"]),
            n=float(record["N"]),
            h=float(record["H"]),
            **kwargs,
        )
