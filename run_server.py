#!/usr/bin/env python3
"""
Start the Nugi Home catalog API server
"""

import sys
from pathlib import Path

# Add src to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

import uvicorn

from nugi_catalog.config import get_settings
from nugi_catalog.logging_config import setup_logging

if __name__ == "__main__":
    settings = get_settings()
    setup_logging(settings.log_level)
    print("Starting Nugi Home catalog API server...")
    print(f"Interactive API docs will be available at: http://localhost:{settings.port}/docs")
    print(f"Health check: http://localhost:{settings.port}/health")
    print()

    uvicorn.run(
        "nugi_catalog.server:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        access_log=True,
        app_dir="src"
    )
