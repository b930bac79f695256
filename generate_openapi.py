import json
import sys

from recipe_hub.main import app


def generate_openapi(output_file: str = "openapi.json"):
    print("Generating OpenAPI schema...")
    openapi_schema = app.openapi()

    with open(output_file, "w") as f:
        json.dump(openapi_schema, f, indent=2)

    print(f"OpenAPI schema for {len(openapi_schema['paths'])} paths saved to {output_file}")


if __name__ == "__main__":
    generate_openapi(*sys.argv[1:2])
