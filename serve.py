#!/usr/bin/env python3
"""
ESG Scraper API Server
Starts the FastAPI backend with uvicorn.

Usage: python serve.py [--reload] [--port 8000]
"""

import argparse
import socket
from pathlib import Path

import uvicorn

from esg_api.config import settings

BACKEND_DIR = Path(__file__).parent / 'backend'


def check_backend_running(host: str, port: int) -> bool:
    """Check if something already listens on the API port"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        return sock.connect_ex((host, port)) == 0
    finally:
        sock.close()


def main():
    parser = argparse.ArgumentParser(description='Run the ESG scraper API')
    parser.add_argument('--host', default=settings.api_host)
    parser.add_argument('--port', type=int, default=settings.api_port)
    parser.add_argument('--reload', action='store_true', help='Reload on code changes')
    args = parser.parse_args()

    print("=" * 50)
    print("  ESG Scraper API")
    print("=" * 50)

    probe_host = 'localhost' if args.host == '0.0.0.0' else args.host
    if check_backend_running(probe_host, args.port):
        print(f"Backend already running on http://{probe_host}:{args.port}")
        return

    print(f"  Backend API: http://{probe_host}:{args.port}")
    print(f"  API Docs:    http://{probe_host}:{args.port}/docs")
    print("=" * 50)

    uvicorn.run(
        'esg_api.main:app',
        host=args.host,
        port=args.port,
        reload=args.reload or settings.api_debug,
        app_dir=str(BACKEND_DIR),
        log_level=settings.log_level.lower(),
    )


if __name__ == '__main__':
    main()
