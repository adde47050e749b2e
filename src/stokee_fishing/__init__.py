"""StokeeFishing - autonomous fishing agent."""

__version__ = "0.3.0"
