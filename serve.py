#!/usr/bin/env python3
"""
Run the compression server.

Usage:
    python serve.py
    python serve.py --host 0.0.0.0 --port 8080 --debug
"""

import argparse
import sys

from imgsqueeze.config import Config
from imgsqueeze.server import create_app
from imgsqueeze.utils import setup_logging


def main():
    parser = argparse.ArgumentParser(description='Run the image compression server')
    parser.add_argument('--host', type=str, default=None, help='Bind address (default: IMGSQUEEZE_HOST or 127.0.0.1)')
    parser.add_argument('--port', type=int, default=None, help='Port (default: IMGSQUEEZE_PORT or 5000)')
    parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')
    args = parser.parse_args()

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging('imgsqueeze', config.log_level_value)

    app = create_app(config)
    app.run(host=args.host or config.host, port=args.port or config.port, debug=args.debug)


if __name__ == '__main__':
    main()
