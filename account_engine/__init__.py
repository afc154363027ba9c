"""Account engine - registration, OTP verification and company membership backend."""

__version__ = "0.1.0"
