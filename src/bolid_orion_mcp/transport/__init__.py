"""Serial transport and frame reader."""

from .serial_connection import SerialTransport, Transport, open_port, probe_link
from .reader import read_frame
