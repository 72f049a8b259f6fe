"""
Environment Early Loader

Loads a local .env file into the process environment so that settings
overrides (LOG_LEVEL, ADVISOR_*) are visible before configuration parsing.
"""

import os
from pathlib import Path
from typing import Union


def load_env(env_path: Union[str, Path] = '.env', override: bool = False) -> int:
    """Load environment variables from a .env file. Returns the number of keys set."""
    env_file = Path(env_path)
    if not env_file.exists():
        return 0

    loaded = 0
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if override or key not in os.environ:
                    os.environ[key] = value
                    loaded += 1
    return loaded
