"""Export JSON schemas for the itinerary document and conflict report."""

import json
from pathlib import Path

from itinerary_engine.app.models import ConflictReport, Itinerary, Location


def main() -> None:
    """Export camelCase schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for model in (Itinerary, Location, ConflictReport):
        schema = model.model_json_schema(by_alias=True)
        path = schemas_dir / f"{model.__name__}.schema.json"
        with open(path, "w") as f:
            json.dump(schema, f, indent=2)
        print(f"Exported {model.__name__} schema to {path}")


if __name__ == "__main__":
    main()
