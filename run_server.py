#!/usr/bin/env python3
"""
Development server launcher for ImageStation.

This script starts the FastAPI server with auto-reload for development.
Vendor keys are read from ARK_API_KEY and REMOVE_BG_API_KEY.
"""

import os
import uvicorn
from pathlib import Path

project_root = Path(__file__).parent
package_path = project_root / "imagestation"

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print("Starting ImageStation Development Server")
    print(f"Server will be available at: http://localhost:{port}")
    print(f"API documentation at: http://localhost:{port}/docs")
    print("\n" + "="*50 + "\n")

    uvicorn.run(
        "imagestation.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,     # development only
        reload_dirs=[str(package_path)],
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
