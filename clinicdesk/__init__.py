"""ClinicDesk: clinic scheduling and attention-list backend."""

__version__ = "0.1.0"
