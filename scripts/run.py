#!/usr/bin/env python3
"""CompeteHub Notifier — Application Runner.

Performs pre-flight checks and launches the main application.

Usage:
    python scripts/run.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BANNER = r"""
╔══════════════════════════════════════════════════════════╗
║                                                          ║
║              CompeteHub Notifier v1.0                    ║
║       New competitions, straight to Telegram             ║
║                                                          ║
╚══════════════════════════════════════════════════════════╝
"""

# Optional: without them the workflow runs but skips notification
TELEGRAM_ENV_VARS = [
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
]

REQUIRED_FILES = [
    "config/settings.yaml",
]


def preflight_checks() -> bool:
    """Run pre-flight checks before starting the application.

    Checks:
      - .env file (optional, loaded when present)
      - Telegram credentials (warn only)
      - Required config files exist
      - data/ and logs/ directories exist (creates them)

    Returns:
        True if all checks pass, False otherwise.
    """
    os.chdir(str(PROJECT_ROOT))
    ok = True

    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        from dotenv import load_dotenv
        load_dotenv(env_path)
        print("✅ .env loaded")
    else:
        print("⚠️  .env not found, using process environment")

    for var in TELEGRAM_ENV_VARS:
        val = os.environ.get(var, "")
        if not val:
            print(f"⚠️  {var} not set (notifications will be skipped)")
        else:
            masked = val[:6] + "..." + val[-4:] if len(val) > 10 else "***"
            print(f"✅ {var} = {masked}")

    for f in REQUIRED_FILES:
        path = PROJECT_ROOT / f
        if not path.exists():
            print(f"❌ {f} not found!")
            ok = False
        else:
            print(f"✅ {f} exists")

    for d in ("data", "logs"):
        (PROJECT_ROOT / d).mkdir(exist_ok=True)
        print(f"✅ {d}/ directory ready")

    return ok


def main() -> None:
    """Entry point: run checks then start the application."""
    print(BANNER)

    print("═══ Pre-flight Checks ═══\n")
    if not preflight_checks():
        print("\n❌ Pre-flight checks failed! Fix the issues above and try again.")
        sys.exit(1)

    print("\n✅ All checks passed!\n")
    print("═══ Starting CompeteHub Notifier ═══\n")

    from src.main import main as app_main
    app_main()


if __name__ == "__main__":
    main()
