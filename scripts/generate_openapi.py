"""Write the HTTP API's OpenAPI document.

The /ws event surface is not part of the document.

Usage:
    python -m scripts.generate_openapi --output openapi.json
"""

import argparse
import json
from pathlib import Path

from watchparty.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the OpenAPI schema")
    parser.add_argument("--output", type=Path, default=Path("openapi.json"))
    args = parser.parse_args()

    schema = app.openapi()
    args.output.write_text(json.dumps(schema, indent=2) + "\n")
    paths = sorted(schema["paths"])
    print(f"Wrote {args.output}: {len(paths)} paths")
    for path in paths:
        print(f"  {path}")


if __name__ == "__main__":
    main()
