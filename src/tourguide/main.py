"""Application entry point for the TourGuide backend server."""

from tourguide.app import App
from tourguide.config import Config
from tourguide.logging import setup_logging
from tourguide.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
