from __future__ import annotations

import os

from occurrence_explorer.paths import load_config
from occurrence_explorer.app.dashboard import create_app

# Alternative settings file for Docker/CI:
#   OCCURRENCE_EXPLORER_CONFIG=/app/config/settings_ci.yaml
_config_env = os.environ.get("OCCURRENCE_EXPLORER_CONFIG", "").strip()

cfg = load_config(_config_env or None)
dash_app = create_app(cfg)

# Gunicorn entrypoint
server = dash_app.server
