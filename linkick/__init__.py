"""LinKick: live chat link catcher for Kick channels."""

__version__ = "1.0.0"
