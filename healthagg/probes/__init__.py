"""Concrete probes — TCP reachability and HTTP endpoint checks."""

from .tcp import TCPChecker
from .url import URLChecker
