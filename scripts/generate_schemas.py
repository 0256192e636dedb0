"""Generate JSON schemas for the launch input files and save to schemas/ directory."""

import json
from pathlib import Path

from launchprep.contracts import ChainLaunch
from launchprep.kernel.cache_record import BinaryCacheFile
from launchprep.kernel.contributions import GenesisInformation


def generate_schemas():
    """Generate JSON schemas for the files launchprep reads and writes."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    for name, model in (
        ("chain_launch", ChainLaunch),
        ("genesis_information", GenesisInformation),
        ("binary_cache", BinaryCacheFile),
    ):
        schema_path = schemas_dir / f"{name}.schema.json"
        with open(schema_path, 'w', encoding='utf-8') as f:
            json.dump(model.model_json_schema(), f, indent=2, ensure_ascii=False)
        print(f"Generated: {schema_path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
