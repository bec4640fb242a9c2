#!/usr/bin/env python3
"""
Flexible Record Registry Entry Point

Starts the FastAPI server with the dataset selected by FLEXREG_* settings.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from flexreg.api import run_server
from flexreg.config import get_config


if __name__ == "__main__":
    settings = get_config()
    print("Starting Flexible Record Registry...")
    print(f"Data store: {settings.store_backend} ({settings.data_path})")
    print(f"API available at: http://localhost:{settings.api_port}")
    print(f"Documentation at: http://localhost:{settings.api_port}/docs")
    print()
    
    try:
        run_server(debug=False)
    except KeyboardInterrupt:
        print("\nShutting down Flexible Record Registry...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
