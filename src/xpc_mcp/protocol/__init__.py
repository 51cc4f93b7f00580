"""Protocol layer: frame header, field layouts, command builders, and reply parsing."""

from .framing import build_frame, parse_frame
from .commands import Command, build_command
