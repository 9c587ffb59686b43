"""Customization value object for drink and food options on a line item."""

import json

from protean.fields import String

from ordering.domain import ordering


@ordering.value_object
class Customization:
    size = String(max_length=50)
    sugar_level = String(max_length=50)
    ice_level = String(max_length=50)
    coffee_level = String(max_length=50)

    @classmethod
    def from_dict(cls, data: dict | None) -> "Customization | None":
        if not data:
            return None
        return cls(**{key: data.get(key) for key in ("size", "sugar_level", "ice_level", "coffee_level")})

    def key(self) -> str:
        """Stable string used to decide whether two lines are the same configuration."""
        return json.dumps({k: v for k, v in self.to_dict().items() if v is not None}, sort_keys=True)


def customization_key(customization: Customization | None) -> str:
    return customization.key() if customization else "{}"
