import logging
import sys


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional run_id and phase fields."""
    def format(self, record):
        # Add default values for run_id and phase if not present
        if not hasattr(record, 'run_id'):
            record.run_id = '-'
        if not hasattr(record, 'phase'):
            record.phase = '-'
        return super().format(record)


def configure_logging(level: int = logging.INFO) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [run_id=%(run_id)s phase=%(phase)s] - %(message)s"
    ))
    logging.basicConfig(
        level=level,
        handlers=[handler],
    )
