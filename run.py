#!/usr/bin/env python3
"""
Credit Module Entry Point

Starts the FastAPI server with the loan API.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from credit_module.api import run_server
from credit_module.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Credit Module...")
    print(f"API available at: http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://{config.api_host}:{config.api_port}/docs")

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False  # Set to True for development
        )
    except KeyboardInterrupt:
        print("\nShutting down Credit Module...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
