"""后台服务与本地 API 启动入口。"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# 确保 src 加入路径
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from scripts.dev_server import main as run_dev_server
from upmotion.service import SharedState, start_backend_in_thread


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s")

    shared_state = SharedState()
    backend_thread = start_backend_in_thread(shared_state)
    if not shared_state.wait_ready(timeout=10.0):
        logging.getLogger(__name__).warning("后台服务未能在 10 秒内就绪")

    try:
        asyncio.run(run_dev_server(shared_state=shared_state))
    finally:
        shared_state.request_stop()
        backend_thread.join(timeout=5.0)


if __name__ == "__main__":
    main()
