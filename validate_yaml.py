#!/usr/bin/env python3
"""Validate autotrack data files against the schema."""
import sys
from datetime import date
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def normalize_dates(value):
    """Turn unquoted YAML dates and timestamps back into ISO strings."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: normalize_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_dates(v) for v in value]
    return value


def check_references(data: dict) -> list[str]:
    """Check ids are unique, plates are unique and every record has its vehicle."""
    errors = []
    vehicle_ids = [v["id"] for v in data.get("vehicles") or []]
    record_ids = [m["id"] for m in data.get("maintenances") or []]
    plates = [str(v["plate"]).upper() for v in data.get("vehicles") or []]

    for label, values in (
        ("vehicle id", vehicle_ids),
        ("maintenance id", record_ids),
        ("plate", plates),
    ):
        duplicates = sorted({str(v) for v in values if values.count(v) > 1})
        if duplicates:
            errors.append(f"Duplicate {label}: {', '.join(duplicates)}")

    known = set(vehicle_ids)
    for m in data.get("maintenances") or []:
        if m["vehicleId"] not in known:
            errors.append(f"Maintenance {m['id']} refers to missing vehicle {m['vehicleId']}")
    return errors


def validate_data_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single data YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = normalize_dates(yaml.safe_load(f))
        validate(instance=data, schema=schema)
        errors.extend(check_references(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given data files, or every YAML file in data/."""
    schema = load_schema()
    paths = [Path(p) for p in (sys.argv[1:] if argv is None else argv)]

    if not paths:
        data_dir = Path(__file__).parent / "data"
        if not data_dir.exists():
            print(f"Error: data directory not found: {data_dir}")
            return 1
        paths = list(data_dir.glob("*.yaml")) + list(data_dir.glob("*.yml"))
        # The notification log shares the directory but not the format
        paths = [p for p in paths if not p.name.startswith("sent-")]

    if not paths:
        print("Warning: No YAML files found")
        return 0

    all_valid = True
    for filepath in sorted(paths):
        errors = validate_data_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
