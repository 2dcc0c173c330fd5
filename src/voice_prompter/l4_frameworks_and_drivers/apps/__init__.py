"""App subclasses — PrompterApp."""

from voice_prompter.l4_frameworks_and_drivers.apps.prompter import PrompterApp

__all__ = ['PrompterApp']
