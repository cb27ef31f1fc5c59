#!/usr/bin/env python3
"""
Launch the Prototyper API with uvicorn.

Host, port and auto-reload come from PROTOTYPER_HOST, PROTOTYPER_PORT and
PROTOTYPER_RELOAD; the defaults suit a local development machine.
"""

import os
import uvicorn
from pathlib import Path

package_dir = Path(__file__).parent / "prototyper"

if __name__ == "__main__":
    host = os.getenv("PROTOTYPER_HOST", "127.0.0.1")
    port = int(os.getenv("PROTOTYPER_PORT", "8000"))
    reload = os.getenv("PROTOTYPER_RELOAD", "1") not in ("0", "false", "no")

    print(f"Prototyper API on http://{host}:{port} (interactive docs at /docs)")
    print(f"Backend config: {os.getenv('PROTOTYPER_CONFIG') or package_dir / 'config' / 'config.yaml'}")

    uvicorn.run(
        "prototyper.api.main:app",
        host=host,
        port=port,
        reload=reload,
        reload_dirs=[str(package_dir)] if reload else None,
        log_level="info"
    )
