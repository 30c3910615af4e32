"""Health subsystem — status record, composite checker, cached refresh."""

from .checker import Checker, CheckerFunc, CompositeChecker
from .status import Health, Status
