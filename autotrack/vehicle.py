"""Vehicle class for vehicle identification and odometer state."""

from typing import Any, Dict, Optional

from .maintenance import as_iso


class Vehicle:
    """A tracked vehicle."""

    def __init__(
        self,
        id: int,
        brand: str,
        model: str,
        plate: str,
        year: Optional[int] = None,
        current_km: int = 0,
        created_at: Optional[str] = None,
    ):
        self.id = id
        self.brand = brand
        self.model = model
        self.plate = str(plate).upper()
        self.year = year
        self.current_km = current_km or 0
        self.created_at = as_iso(created_at)

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.brand} {self.model}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase dict format."""
        return {
            "id": self.id,
            "brand": self.brand,
            "model": self.model,
            "plate": self.plate,
            "year": self.year,
            "currentKm": self.current_km,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "Vehicle":
        return cls(
            dct["id"],
            dct["brand"],
            dct["model"],
            dct["plate"],
            dct.get("year"),
            dct.get("currentKm") or 0,
            dct.get("createdAt"),
        )
