"""
Headless kiosk: runs the attendance session and logs every display change.

    python app.py --camera 0
"""
import argparse
import asyncio
import logging
import signal

import httpx

from config import load_env_config, settings
from core.camera import CameraSource
from core.directory import DirectoryLookup
from core.narrator import Narrator
from core.resolver import RemoteIdentityResolver
from core.screener import LocalFaceScreener
from core.session import KioskSession

logger = logging.getLogger("kiosk")


def build_session(conf=None, speak=True):
    """Wire camera, screener, remote clients and narrator into a session"""
    from core.detector import FaceDetector

    conf = conf or load_env_config()
    client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    camera = CameraSource(conf["CAMERA"])
    camera.open()

    return KioskSession(
        frame_source=camera,
        screener=LocalFaceScreener(FaceDetector()),
        resolver=RemoteIdentityResolver(
            client,
            store_url=conf["OBJECT_STORE_URL"],
            bucket=conf["OBJECT_STORE_BUCKET"],
            match_url=conf["MATCH_URL"],
        ),
        directory=DirectoryLookup(client, base_url=conf["DIRECTORY_URL"]),
        narrator=Narrator() if speak else None,
        http_client=client,
    )


def describe(display):
    state = "AUTHENTICATED" if display.authenticated else "-"
    if display.profile is not None:
        p = display.profile
        return f"[{state}] {display.message} | {p.id} - {p.name} ({p.designation}, {p.department})"
    return f"[{state}] {display.message}"


async def run(conf, speak=True):
    session = build_session(conf, speak=speak)
    session.add_listener(lambda display: logger.info(describe(display)))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C raises instead
            pass

    session.start()
    try:
        await stop_event.wait()
    finally:
        await session.aclose()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Face attendance kiosk (headless)")
    parser.add_argument("--camera", help="Camera index or stream URL")
    parser.add_argument("--mute", action="store_true", help="Do not speak greetings")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=settings.LOG_FORMAT)

    conf = load_env_config()
    if args.camera is not None:
        conf["CAMERA"] = args.camera

    try:
        asyncio.run(run(conf, speak=not args.mute))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
