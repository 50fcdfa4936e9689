#!/usr/bin/env python
"""
Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn inventory_analytics.main:app -c gunicorn.conf.py
"""

import argparse
import subprocess

import uvicorn

from inventory_analytics.config import get_settings

APP = "inventory_analytics.main:app"


def run_dev_server(port: int) -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        APP,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["inventory_analytics"],
        log_level="debug",
    )


def run_prod_server(port: int) -> None:
    """Run production server with Uvicorn directly."""
    settings = get_settings()
    uvicorn.run(
        APP,
        host=settings.api_host,
        port=port,
        workers=settings.api_workers,
        log_level=settings.monitoring.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def run_gunicorn() -> None:
    """Run with Gunicorn (recommended for production)."""
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Inventory Analytics API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run with Gunicorn (production)")
    parser.add_argument("--port", type=int, default=None, help="Port to run on (default: API_PORT)")
    args = parser.parse_args()

    port = args.port or get_settings().api_port

    if args.dev:
        run_dev_server(port)
    elif args.gunicorn:
        run_gunicorn()
    else:
        run_prod_server(port)
