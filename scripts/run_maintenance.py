"""
Expire long-denied submissions and send the rejection reminders.

Intended for a daily scheduled job:
  python scripts/run_maintenance.py
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from app.partnerhub import create_app
    from app.partnerhub.db import session_scope
    from app.partnerhub.modules.maintenance.service import run_maintenance

    app = create_app()
    with app.app_context(), session_scope(app) as s:
        result = run_maintenance(s)
    print(json.dumps(result), flush=True)


if __name__ == "__main__":
    main()
