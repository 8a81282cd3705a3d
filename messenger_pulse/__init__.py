"""
MessengerPulse: a Messenger inbox for Facebook Pages.

Lists page conversations from the Graph API, highlights threads where the
page is still waiting for an answer, sends replies and drafts follow-ups.
"""

from messenger_pulse.config.constants import SERVICE_NAME, SERVICE_VERSION

__version__ = SERVICE_VERSION
__all__ = ["SERVICE_NAME", "__version__"]
