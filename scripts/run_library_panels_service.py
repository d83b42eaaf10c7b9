"""
Library Panels Service Launcher

Starts the library panels API from the librarypanels/ package.

Usage:
    python scripts/run_library_panels_service.py --host 0.0.0.0 --port 8010

Environment Variables:
    LIBRARY_PANELS_API_PORT: API port (default: 8010)
    LIBRARY_PANELS_BIND_HOST: Bind address (default: 0.0.0.0)
    LIBRARY_PANELS_DATABASE_URL: SQLAlchemy database URL
    LIBRARY_PANELS_ENABLED: feature toggle for the library panel routes
"""
import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from librarypanels.config import API_PORT, BIND_HOST, DATABASE_URL


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the library panels service")
    parser.add_argument("--host", default=BIND_HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    args = parser.parse_args()

    print("=" * 60)
    print("Library Panels Service")
    print("=" * 60)
    print(f"API Address: {args.host}:{args.port}")
    print(f"Database: {DATABASE_URL}")
    print("=" * 60)

    os.environ["LIBRARY_PANELS_API_PORT"] = str(args.port)
    os.environ["LIBRARY_PANELS_BIND_HOST"] = args.host

    uvicorn.run("librarypanels.service:app", host=args.host, port=args.port, reload=False)


if __name__ == "__main__":
    main()
