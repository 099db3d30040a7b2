#!/usr/bin/env python3
"""Standalone Flask application for the wbprop query API.

This script provides an easy way to run the backend during development.

Usage:
    python app.py

The API will be available at http://localhost:5000/api/
"""

import os
import sys
from pathlib import Path

# Add the src directory to the Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from wbprop.backend.app import create_app  # noqa: E402


def main():
    """Run the Flask development server."""
    app = create_app()

    # Get configuration from environment variables
    debug = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'
    host = os.getenv('FLASK_HOST', '0.0.0.0')
    port = int(os.getenv('FLASK_PORT', '5000'))

    print("Starting wbprop query API...")
    print(f"Server will be available at: http://localhost:{port}/api/")
    print(f"Debug mode: {debug}")

    app.run(debug=debug, host=host, port=port, threaded=True, use_reloader=False)


if __name__ == '__main__':
    main()
