"""Run the Emerald City API:  python -m emerald_city [--host H] [--port P]"""

import argparse
import logging

from .app import create_app
from .config import Settings


def main(argv=None):
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(prog="emerald_city", description=__doc__)
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings.host, settings.port = args.host, args.port

    app = create_app(settings)
    logging.getLogger(__name__).info(
        f"Emerald City on {settings.host}:{settings.port} "
        f"(store={settings.store_url}, captcha={settings.captcha_mode})"
    )
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
