from __future__ import annotations

import logging

from occurrence_explorer.paths import load_config
from occurrence_explorer.app.dashboard import create_app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    cfg = load_config()
    app = create_app(cfg)

    host = str(cfg.get("app", {}).get("host", "127.0.0.1"))
    port = int(cfg.get("app", {}).get("port", 8050))
    debug = bool(cfg.get("app", {}).get("debug", True))

    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
