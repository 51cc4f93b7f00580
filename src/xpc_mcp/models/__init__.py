"""Data models for aircraft state vectors."""

from .state import ControlState, PositionState, DataRow
