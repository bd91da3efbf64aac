"""Employee leave tracking: quota accounting, approval workflow and usage statistics."""

__version__ = "1.0.0"
