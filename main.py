"""Companion Stories dev launcher. Starts the API server in watch mode."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Companion Stories dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo persona + stories")
    args = parser.parse_args()

    if args.demo or args.data_dir:
        from companion_stories import storage
        data_dir = args.data_dir or ROOT / "data"
        storage.init_storage(data_dir)
        if args.demo:
            from companion_stories.demo import create_demo_data
            create_demo_data()

    # Build env for the server so it picks up the same data dir
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    print(f"Starting API on http://localhost:{PORT} ...")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "companion_stories.app:create_app", "--factory",
         "--reload", "--host", HOST, "--port", PORT],
        cwd=ROOT, env=env,
    )
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
