"""
Write the service's OpenAPI document to interfaces/openapi.json.

Usage:
    python -m rls_api.api.generate_openapi
"""

import json
import os

from rls_api.api.main import app
from rls_api.db.policies import CURRENT_USER_SETTING, OWNED_TABLES


# PUBLIC_INTERFACE
def main(output_dir: str = "interfaces") -> str:
    """Generate the OpenAPI schema file and return its path."""
    openapi_schema = app.openapi()
    # The policies are invisible in the schema; record which setting they read.
    openapi_schema["x-row-level-security"] = {
        "setting": CURRENT_USER_SETTING,
        "scope": "transaction",
        "tables": list(OWNED_TABLES),
    }

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "openapi.json")
    with open(output_path, "w") as f:
        json.dump(openapi_schema, f, indent=2)
    return output_path


if __name__ == "__main__":
    main()
