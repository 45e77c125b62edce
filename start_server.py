#!/usr/bin/env python3
"""
Python-based startup script for the Stream Classifier API.
"""

import os
import sys
import subprocess

from dotenv import load_dotenv


def main():
    """Main entry point."""
    print("=" * 60)
    print("Stream Classifier API Server")
    print("=" * 60)

    load_dotenv()

    # Configuration
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    workers = int(os.getenv("WORKERS", "1"))
    database_url = os.getenv("STREAMINT_DATABASE_URL", "").strip()

    print(f"\nConfiguration:")
    print(f"  Host: {host}")
    print(f"  Port: {port}")
    print(f"  Workers: {workers}")
    print(f"  Store: {'SQL database' if database_url else 'built-in reference curriculum'}")

    print(f"\nAPI Documentation: http://localhost:{port}/docs")
    print("=" * 60)

    # Build uvicorn command
    cmd = [
        sys.executable, "-m", "uvicorn",
        "app:app",
        "--host", host,
        "--port", str(port),
    ]

    if workers == 1:
        cmd.append("--reload")
    else:
        cmd.extend(["--workers", str(workers)])

    # Run server
    try:
        subprocess.run(cmd)
    except KeyboardInterrupt:
        print("\n\nShutting down server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
