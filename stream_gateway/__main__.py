import argparse

import uvicorn

from stream_gateway.core import config


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="stream-gateway", description="Serve the streaming provider gateway.")
    parser.add_argument("--host", default=config.HOST)
    parser.add_argument("--port", type=int, default=config.PORT)
    parser.add_argument("--reload", action="store_true", help="Enable uvicorn reload (dev only).")
    args = parser.parse_args(argv)

    uvicorn.run(
        "stream_gateway.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
