"""voice-prompter — keeps a scrolling script in step with the speaker's voice."""

__version__ = '0.1.0'
