"""Solar resource module (synthetic irradiance envelope)."""

from .irradiance import solar_envelope

__all__ = ["solar_envelope"]
