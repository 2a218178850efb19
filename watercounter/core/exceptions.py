class WaterCounterError(Exception):
	"""Base class for errors raised by the offline agent"""


class StorageError(WaterCounterError):
	"""Local persistence failed (disk, quota, corrupted database)"""


class NotFoundError(WaterCounterError):
	"""Requested local record does not exist"""

	def __init__(self, entity: str, key):
		self.entity = entity
		self.key = key
		super().__init__(f"{entity} {key} not found")


class NetworkError(WaterCounterError):
	"""Remote server unreachable, timed out, or answered with a non-2xx status"""

	def __init__(self, message: str, status_code: int = None):
		self.status_code = status_code
		super().__init__(message)


class ValidationError(WaterCounterError):
	"""Reading payload rejected before it reached the local store"""
