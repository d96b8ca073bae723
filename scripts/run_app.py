#!/usr/bin/env python
"""
Serve the Streamlit checkout page.

Usage:
    python scripts/run_app.py
    CHECKOUT_RULES_FILE=rules.xlsx CHECKOUT_APP_PORT=8600 python scripts/run_app.py
"""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent
    page = project_root / 'src' / 'checkout_pricing' / 'ui' / 'app_streamlit.py'
    if not page.exists():
        print(f"ERROR: checkout page missing: {page}")
        sys.exit(1)

    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    port = env.get("CHECKOUT_APP_PORT", "8501")
    print(f"Serving checkout page on port {port}...")
    try:
        subprocess.run(
            [sys.executable, "-m", "streamlit", "run", str(page), "--server.port", port],
            cwd=str(project_root),
            env=env,
        )
    except KeyboardInterrupt:
        print("\nCheckout page stopped.")


if __name__ == "__main__":
    main()
