from __future__ import annotations

from typing import Optional

import uvicorn

from .config import get_bind_host, get_bind_port, load_config
from .voting_api import create_app


def main(config_path: Optional[str] = None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    cfg = load_config(config_path)
    app = create_app(cfg)
    uvicorn.run(app, host=host or get_bind_host(cfg), port=port or get_bind_port(cfg))


if __name__ == "__main__":
    main()
