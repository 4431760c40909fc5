"""Export JSON schemas for ItineraryEvent and ItineraryView."""

import json
from pathlib import Path

from backend.app.models import ItineraryEvent, ItineraryView


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for model in (ItineraryEvent, ItineraryView):
        schema_path = schemas_dir / f"{model.__name__}.schema.json"
        with open(schema_path, "w") as f:
            json.dump(model.model_json_schema(), f, indent=2)
        print(f"Exported {model.__name__} schema to {schema_path}")


if __name__ == "__main__":
    main()
