#!/usr/bin/env python3
"""Run the Pattern Discovery web server."""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from pattern_discovery.config import get_log_level, get_server_config


def main():
    import uvicorn

    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = get_server_config()

    print(f"""
    Pattern Discovery Server
      URL:        http://{cfg.host}:{cfg.port}
      API Docs:   http://{cfg.host}:{cfg.port}/docs
      Hot Reload: {cfg.reload}
    """)

    uvicorn.run(
        "server.app:app",
        host=cfg.host,
        port=cfg.port,
        reload=cfg.reload,
    )


if __name__ == "__main__":
    main()
