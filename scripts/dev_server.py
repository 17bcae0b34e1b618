"""开发环境启动 FastAPI 服务。"""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from contextlib import suppress

import uvicorn

from upmotion.adapters import SimulatedMotionAdapter
from upmotion.config import AppConfig
from upmotion.core.activity_engine import ActivityEngine
from upmotion.history import ActivityHistory
from upmotion.ui import create_app

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s")


async def main(shared_state=None) -> None:
    config_model = AppConfig.load()

    engine = None
    history = None
    adapter = None
    if shared_state is None:
        engine = ActivityEngine(config=config_model)
        history = ActivityHistory()
        engine.hub.subscribe(history)
        await engine.start()
        if config_model.simulation_enabled:
            adapter = SimulatedMotionAdapter(
                engine,
                sample_interval=config_model.simulation_sample_interval_ms / 1000,
                phase_seconds=config_model.simulation_phase_seconds,
                seed=config_model.simulation_seed,
            )
            await adapter.start()

    app = create_app(engine=engine, history=history, shared_state=shared_state)

    uvicorn_config = uvicorn.Config(app, host=config_model.api_host, port=config_model.api_port, reload=False)
    server = uvicorn.Server(uvicorn_config)

    if threading.current_thread() is threading.main_thread():
        stop_event = asyncio.Event()

        def _handle_stop(*_: object) -> None:
            logger.info("收到终止信号，准备关闭服务器…")
            stop_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _handle_stop)

        async def _serve() -> None:
            await server.serve()
            stop_event.set()

        serve_task = asyncio.create_task(_serve())

        await stop_event.wait()
        serve_task.cancel()
        with suppress(asyncio.CancelledError):
            await serve_task
    else:
        await server.serve()

    if adapter is not None:
        adapter.stop()
    if engine is not None:
        engine.stop()


if __name__ == "__main__":
    asyncio.run(main())
