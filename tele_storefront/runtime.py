"""Process-wide values shared across modules without import cycles."""
from __future__ import annotations

from datetime import datetime

# Module import time doubles as the bot start time.
STARTUP_TIME = datetime.now()
