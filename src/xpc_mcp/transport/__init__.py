"""UDP transport and request/response correlation."""

from .udp_connection import UDPConnection
from .correlator import Correlator, MAX_POLL_ATTEMPTS
