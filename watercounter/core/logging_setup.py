import logging
import sys

from watercounter.config import settings


def setup_logging(level: str = None):
	"""Configure root logging once for the agent process"""
	logging.basicConfig(
		level=level or (logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL),
		format=settings.LOG_FORMAT,
		handlers=[logging.StreamHandler(sys.stdout)],
		force=True,
	)
	# httpx logs every request at INFO
	logging.getLogger("httpx").setLevel(logging.WARNING)
