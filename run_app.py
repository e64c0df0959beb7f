#!/usr/bin/env python3
"""
AquaRent Notification Backend Runner
====================================

Starts the API server, the Celery worker or the Celery beat scheduler.

Usage:
    python run_app.py                    # API server (default)
    python run_app.py --mode worker      # Celery worker for the notifications queue
    python run_app.py --mode beat        # Celery beat, schedules the pending sweep
    python run_app.py --port 8001        # Custom port
    python run_app.py --no-reload        # Disable auto-reload
"""

import argparse
import os
import subprocess
import sys

def print_banner():
    """Print application banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║            🔔 AquaRent Notification Backend           ║
╚═══════════════════════════════════════════════════════╝
    """
    print(banner)

def check_environment():
    """Report on the local environment"""
    print("\n🔍 Checking environment...")

    if os.path.exists(".env"):
        print("✅ .env file found")
    else:
        print("⚠️  .env file not found, using defaults")

def run_api(host="0.0.0.0", port=8000, reload=True):
    """Run the FastAPI application"""
    print(f"\n🚀 Starting API on {host}:{port}")
    print(f"📖 API Docs: http://localhost:{port}/api/docs")
    print("\n" + "="*50)

    import uvicorn
    uvicorn.run(
        "aquarent.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )

def run_celery(mode):
    """Run a Celery worker or the beat scheduler"""
    command = [sys.executable, "-m", "celery", "-A", "aquarent.core.celery_app", mode, "--loglevel=info"]
    if mode == "worker":
        command += ["-Q", "default,notifications"]

    print(f"\n🚀 Starting Celery {mode}")
    print("\n" + "="*50)
    return subprocess.call(command)

def main():
    parser = argparse.ArgumentParser(
        description="AquaRent Notification Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--mode",
        choices=["api", "worker", "beat"],
        default="api",
        help="What to run (default: api)"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    args = parser.parse_args()

    print_banner()
    check_environment()

    if args.mode == "api":
        run_api(args.host, args.port, reload=not args.no_reload)
        return 0

    return run_celery(args.mode)

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)
