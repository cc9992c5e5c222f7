"""purchase: activating a detected purchase control with bounded retries."""

from .executor import PurchaseExecutor  # noqa: F401
