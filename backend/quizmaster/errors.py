"""Typed failures raised by the core services.

Every error carries a stable ``kind`` string so callers (and the HTTP layer)
can branch on it instead of parsing messages.
"""
from __future__ import annotations


class QuizmasterError(Exception):
	kind = "error"
	status_code = 500

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class NotFound(QuizmasterError):
	kind = "not_found"
	status_code = 404


class Forbidden(QuizmasterError):
	kind = "forbidden"
	status_code = 403


class Conflict(QuizmasterError):
	kind = "conflict"
	status_code = 409


class ValidationError(QuizmasterError):
	kind = "validation_error"
	status_code = 400


class MappingError(QuizmasterError):
	"""LLM output parsed as JSON but does not fit the creation payload."""

	kind = "mapping_error"
	status_code = 422


class TransportError(QuizmasterError):
	"""Upstream LLM call failed or returned an unusable body."""

	kind = "transport_error"
	status_code = 502


class GenerationError(QuizmasterError):
	kind = "generation_error"
	status_code = 502
