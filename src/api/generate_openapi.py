import json
import os

from src.api.main import app

"""
Script to generate and write the OpenAPI schema to interfaces/openapi.json
Run: python -m src.api.generate_openapi
"""


def write_openapi(output_dir: str = "interfaces") -> str:
    """Write the app's OpenAPI schema into output_dir and return the file path."""
    openapi_schema = app.openapi()
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "openapi.json")
    with open(output_path, "w") as f:
        json.dump(openapi_schema, f, indent=2)
    return output_path


if __name__ == "__main__":
    print(f"Wrote OpenAPI schema to {write_openapi()}")
