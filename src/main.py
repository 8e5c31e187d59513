import sys
import logging
from typing import List, Optional

from pydantic import ValidationError

from config import get_settings
from csv_codec import write_summary
from errors import DecodeError
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python main.py <transactions.csv>", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
    except ValidationError as error:
        print(f"Invalid configuration: {error}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    filepath = args[0]
    engine = PaymentsEngine(num_workers=settings.workers)
    try:
        summaries = engine.process_file(filepath)
    except (OSError, DecodeError) as error:
        logger.error(f"Failed processing {filepath}: {error}")
        return 1

    write_summary(sorted(summaries, key=lambda summary: summary.client_id), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
