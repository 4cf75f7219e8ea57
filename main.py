from server import run_server
from settings import get_settings
from utils.logger import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    run_server()

if __name__ == "__main__":
    main()
