"""Protocol layer: frame layout, checksum gate, request builders, and response parsing."""

from .framing import Frame, FrameCheck, parse_frame, to_hex, validate_frame
from .commands import Opcode, build_change_address_request, build_type_request
from .parser import (
    parse_change_address_response,
    parse_partial_response,
    parse_type_response,
)
